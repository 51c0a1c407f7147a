"""
Database models for the mcp-manager backend.

This package contains SQLAlchemy models for the application.
"""

from .server import JSONEncodedText, ServerKind, ServerModel

__all__ = ["JSONEncodedText", "ServerKind", "ServerModel"]
