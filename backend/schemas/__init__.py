"""
Pydantic schemas for API validation.

This package contains Pydantic models for request/response validation
and data transformation.
"""

from .server import (
    CommandPayload,
    DiscoveredServerEntry,
    ServerCreateSchema,
    ServerDefinition,
    ServerRecord,
    ServerUpdateSchema,
    UrlPayload,
)
from .catalog import (
    BulkImportRequest,
    DetectedClient,
    ImportEntryError,
    ImportResult,
    OperationResult,
    WriteClientConfigRequest,
)

__all__ = [
    "CommandPayload",
    "UrlPayload",
    "ServerDefinition",
    "ServerRecord",
    "ServerCreateSchema",
    "ServerUpdateSchema",
    "DiscoveredServerEntry",
    "OperationResult",
    "ImportEntryError",
    "ImportResult",
    "DetectedClient",
    "BulkImportRequest",
    "WriteClientConfigRequest",
]
