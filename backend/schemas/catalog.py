"""
Pydantic schemas for catalogue operation results.

Every operation exposed to the UI layer answers with a success flag plus
either a payload or an error message.
"""

from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from schemas.server import ServerDefinition


class OperationResult(BaseModel):
    """Envelope returned by every catalogue operation."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None


class ImportEntryError(BaseModel):
    """One rejected entry of a bulk import."""

    server_name: str
    error: str


class ImportResult(BaseModel):
    """Aggregate outcome of a bulk import."""

    success: bool
    message: str
    imported_count: int = 0
    error_count: int = 0
    errors: List[ImportEntryError] = Field(default_factory=list)


class DetectedClient(BaseModel):
    """A supported client and whether its global configuration file exists."""

    id: str = Field(..., description="Client id, e.g. 'vscode'")
    name: str = Field(..., description="Display name, e.g. 'Visual Studio Code'")
    config_path: Optional[Path] = Field(None, description="Global configuration file, if found")
    is_configured: bool = Field(default=False, description="True if the configuration file exists")


class BulkImportRequest(BaseModel):
    """Schema for importing a JSON document of servers."""

    payload: str = Field(..., description='JSON string with an "mcpServers" object')


class WriteClientConfigRequest(BaseModel):
    """Schema for writing the managed catalogue into a client's file."""

    path: Optional[str] = Field(None, description="Client configuration file path")
    client_id: str = Field(..., description="Client id selecting the container key")
    records: List[ServerDefinition] = Field(default_factory=list, description="Servers to write")
