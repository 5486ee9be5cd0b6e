"""Task list client that keeps an ordered todo list in sync with a remote service."""

__version__ = "0.1.0"
