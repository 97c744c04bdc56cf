"""Authentication helpers for the Gmail API."""

from __future__ import annotations

import os

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from gmail_sweeper.constants import CONFIG_DIR, CREDENTIALS_PATH, SCOPES, TOKEN_ENV_VAR, TOKEN_PATH
from gmail_sweeper.gmail_client import GmailMailbox


def get_credentials(access_token: str | None = None) -> Credentials:
    """Return credentials for the Gmail API.

    A bearer token passed in (or set in GMAIL_SWEEPER_TOKEN) is used as is
    and never written to disk.  Otherwise the cached token at TOKEN_PATH is
    loaded and refreshed when expired, and if there is none an OAuth browser
    flow is launched (requires credentials.json at CREDENTIALS_PATH).
    """
    access_token = access_token or os.environ.get(TOKEN_ENV_VAR)
    if access_token:
        return Credentials(token=access_token, scopes=SCOPES)

    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    creds: Credentials | None = None

    if TOKEN_PATH.exists():
        creds = Credentials.from_authorized_user_file(str(TOKEN_PATH), SCOPES)

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
    elif not creds or not creds.valid:
        if not CREDENTIALS_PATH.exists():
            raise FileNotFoundError(
                f"Credentials file not found at {CREDENTIALS_PATH}.\n"
                "Download your OAuth client credentials from the Google Cloud Console "
                "and save them as:\n"
                f"  {CREDENTIALS_PATH}\n"
                f"or pass an access token with --token / {TOKEN_ENV_VAR}."
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(CREDENTIALS_PATH), SCOPES)
        creds = flow.run_local_server(port=0)

    TOKEN_PATH.write_text(creds.to_json())

    return creds


def get_mailbox(access_token: str | None = None, timeout: float | None = None) -> GmailMailbox:
    """Return an authenticated GmailMailbox."""
    return GmailMailbox(get_credentials(access_token), timeout=timeout)
