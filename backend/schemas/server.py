"""
Pydantic schemas for managed and discovered MCP servers.

A server's launch payload is a tagged variant: either a command (with args)
or a URL. Everything downstream of the codec works on the variant and never
on loose optional command/url fields.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from models.server import ServerKind, ServerModel


class CommandPayload(BaseModel):
    """Local command launcher."""

    kind: Literal["command"] = "command"
    command: Optional[str] = Field(None, description="Executable command")
    args: List[str] = Field(default_factory=list, description="Command arguments")


class UrlPayload(BaseModel):
    """Remote server reached by URL."""

    kind: Literal["url"] = "url"
    url: str = Field(..., description="Server URL")


ServerPayload = Annotated[Union[CommandPayload, UrlPayload], Field(discriminator="kind")]


class ServerDefinition(BaseModel):
    """
    Canonical server definition: a record without id and timestamps.

    This is the shape produced by decoding client configuration files and
    consumed when encoding them.
    """

    name: str = Field(..., description="Server name")
    payload: ServerPayload
    env: Dict[str, str] = Field(default_factory=dict, description="Environment variables")
    autostart: bool = Field(default=False, description="Start the server automatically")

    @property
    def kind(self) -> ServerKind:
        return ServerKind(self.payload.kind)

    @property
    def command_or_url(self) -> Optional[str]:
        if isinstance(self.payload, UrlPayload):
            return self.payload.url
        return self.payload.command

    @property
    def args(self) -> List[str]:
        if isinstance(self.payload, CommandPayload):
            return self.payload.args
        return []


def _stored_args(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(arg) for arg in value]
    return []


def _stored_env(value: Any) -> Dict[str, str]:
    if isinstance(value, dict):
        return {str(key): str(val) for key, val in value.items()}
    return {}


class ServerRecord(ServerDefinition):
    """Server definition as stored in the catalogue."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, server: ServerModel) -> "ServerRecord":
        """
        Decode a database row into its canonical form.

        Absent args become [], absent env becomes {}, non-string items are
        stringified, stored 0/1 becomes a bool.
        """
        if server.kind == ServerKind.URL.value:
            payload = UrlPayload(url=server.url or "")
        else:
            payload = CommandPayload(command=server.command, args=_stored_args(server.args))

        return cls(
            id=server.id,
            name=server.name,
            payload=payload,
            env=_stored_env(server.env),
            autostart=bool(server.autostart),
            created_at=server.created_at,
            updated_at=server.updated_at,
        )


class ServerCreateSchema(BaseModel):
    """Schema for creating a server from a flat form submission."""

    name: str = Field(..., description="Server name")
    kind: ServerKind = Field(default=ServerKind.COMMAND, description="Server kind: command or url")
    command: Optional[str] = Field(None, description="Executable command (required for command servers)")
    url: Optional[str] = Field(None, description="Server URL (required for url servers)")
    args: Optional[List[str]] = Field(None, description="Command arguments (command servers only)")
    env: Optional[Dict[str, str]] = Field(None, description="Environment variables")
    autostart: bool = Field(default=False, description="Start the server automatically")

    @property
    def command_or_url(self) -> Optional[str]:
        return self.url if self.kind == ServerKind.URL else self.command


class ServerUpdateSchema(ServerCreateSchema):
    """Schema for replacing an existing server's definition."""


class DiscoveredServerEntry(BaseModel):
    """A server found in a client's configuration file, not yet managed."""

    client_id: str = Field(..., description="Originating client id")
    client_name: str = Field(..., description="Originating client display name")
    original_name: str = Field(..., description="Server key in the client's file")
    definition: ServerDefinition
