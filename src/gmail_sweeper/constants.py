"""Constants for Gmail Sweeper."""

from pathlib import Path

# --- Config paths ---
CONFIG_DIR = Path.home() / ".gmail-sweeper"
CREDENTIALS_PATH = CONFIG_DIR / "credentials.json"
TOKEN_PATH = CONFIG_DIR / "token.json"
CACHE_DB_PATH = CONFIG_DIR / "cache.db"
ACTION_LOG_PATH = CONFIG_DIR / "action_log.json"
TOKEN_ENV_VAR = "GMAIL_SWEEPER_TOKEN"

# --- Gmail API ---
SCOPES = ["https://www.googleapis.com/auth/gmail.modify"]
PAGE_SIZE = 100  # ids per list page
BATCH_MODIFY_LIMIT = 1000  # ids per batchModify call
METADATA_HEADERS = ["From", "Subject", "Date", "List-Unsubscribe", "List-Unsubscribe-Post"]
TRASH_LABEL = "TRASH"
INBOX_LABEL = "INBOX"

# --- Scan limits ---
DEFAULT_MAX_PAGES = 6  # ~600 messages
DEFAULT_CONCURRENCY = 12  # parallel detail fetches
MAX_PAGES_LIMIT = 20
CONCURRENCY_LIMIT = 24

# --- Classification ---
UNKNOWN = "(unknown)"
ONE_CLICK_BODY = "List-Unsubscribe=One-Click"
ONE_CLICK_CONTENT_TYPE = "application/x-www-form-urlencoded"
USER_AGENT = "gmail-sweeper/0.1.0"

# --- Selection ---
DEFAULT_INACTIVE_DAYS = 90
MS_PER_DAY = 24 * 60 * 60 * 1000

# --- Queries ---
_BASE_QUERY = "(category:promotions OR has:list-unsubscribe)"
DEFAULT_QUERY = "category:promotions OR has:list-unsubscribe"
QUERY_PRESETS = {
    "promotions": "category:promotions",
    "newsletters": "has:list-unsubscribe",
    "last7": f"{_BASE_QUERY} newer_than:7d",
    "last30": f"{_BASE_QUERY} newer_than:30d",
    "older90": f"{_BASE_QUERY} older_than:90d",
    "older180": f"{_BASE_QUERY} older_than:180d",
    "older365": f"{_BASE_QUERY} older_than:365d",
    "unread-promotions": "category:promotions is:unread",
    "big5mb": "larger:5M",
    "social": "category:social",
    "primary-unread": "category:primary is:unread",
}

# --- Display ---
SNIPPET_DISPLAY_LIMIT = 60
