"""Process-level setup shared by the command-line front end."""

from goalsched.core.logging import configure_logging

__all__ = ["configure_logging"]
