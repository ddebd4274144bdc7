"""Web application entry point for Inbox Steward."""

from .app import create_app

__all__ = ["create_app"]
