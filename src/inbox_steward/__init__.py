"""Inbox Steward: automated mailbox triage."""

__version__ = "0.1.0"
