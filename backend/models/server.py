"""
MCP (Model Context Protocol) server model.

This model stores the managed server catalogue. A server is either a local
command (command + args) or a remote URL; exactly one of the two payloads is
populated, selected by the kind column.
"""

import enum
import json
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, Text, func, text
from sqlalchemy.types import TypeDecorator

from database import Base


class ServerKind(str, enum.Enum):
    """MCP server kind enumeration."""
    COMMAND = "command"
    URL = "url"


class JSONEncodedText(TypeDecorator):
    """
    JSON value stored in a TEXT column.

    Empty lists and mappings are stored as NULL so that "no args" and "no env"
    have exactly one on-disk representation.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if not value:
            return None
        return json.dumps(value)

    def process_result_value(self, value, dialect):
        if value is None or value == "":
            return None
        return json.loads(value)


class ServerModel(Base):
    """
    Model for storing MCP server configurations.

    Fields:
    - id: Autoincrementing integer primary key
    - name: Unique server name
    - kind: "command" or "url"
    - command: Executable command (command servers only)
    - url: Server URL (url servers only)
    - args: Command arguments as JSON array, NULL when empty
    - env: Environment variables as JSON object, NULL when empty
    - autostart: Whether the client should start the server automatically
    """

    __tablename__ = "servers"
    __table_args__ = {"sqlite_autoincrement": True}

    # Primary key
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Server name
    name = Column(Text, nullable=False, unique=True)

    # Payload selector and payloads
    kind = Column(Text, nullable=False, default=ServerKind.COMMAND.value, server_default=ServerKind.COMMAND.value)
    command = Column(Text, nullable=True)
    url = Column(Text, nullable=True)
    args = Column(JSONEncodedText, nullable=True)
    env = Column(JSONEncodedText, nullable=True)

    autostart = Column(Boolean, default=False, server_default=text("0"))

    # Timestamps (camelCase column names are kept for stores written by older builds)
    created_at = Column("createdAt", DateTime, default=datetime.utcnow, server_default=func.current_timestamp())
    updated_at = Column(
        "updatedAt",
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        server_default=func.current_timestamp(),
    )

    def __repr__(self):
        return f"<ServerModel(id={self.id}, name={self.name}, kind={self.kind}, command={self.command}, url={self.url})>"
