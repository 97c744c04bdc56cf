"""Gmail Sweeper - scan a Gmail mailbox and bulk unsubscribe, archive or delete."""

__version__ = "0.1.0"
