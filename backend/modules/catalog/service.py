"""
Catalogue service for the operations exposed to the UI layer.

Every operation answers with a success flag plus either a payload or an error
message; no exception crosses this boundary. Client file reads and writes run
in a worker thread so they never block the event loop.
"""

import asyncio
from typing import Iterable, Optional

from database import Store
from modules.catalog.importer import ImportReconciler, is_potentially_imported
from modules.catalog.repository import ServerRepository
from modules.clients.profiles import detect_clients
from modules.clients.reconciler import ClientConfigReconciler
from schemas.catalog import ImportResult, OperationResult
from schemas.server import DiscoveredServerEntry, ServerCreateSchema, ServerDefinition, ServerUpdateSchema
from utils.logging import get_logger

logger = get_logger("catalog.service")


class CatalogService:
    """Service for catalogue operations."""

    def __init__(self, store: Store, reconciler: Optional[ClientConfigReconciler] = None):
        self.repository = ServerRepository(store)
        self.importer = ImportReconciler(self.repository)
        self.reconciler = reconciler or ClientConfigReconciler()

    async def add_server(self, data: ServerCreateSchema) -> OperationResult:
        """Add a server; data is the new server id."""
        try:
            server_id = await self.repository.add(
                data.name,
                data.kind,
                data.command_or_url,
                data.args,
                data.env,
                data.autostart,
            )
            return OperationResult(success=True, data=server_id)
        except Exception as e:
            logger.error(f"Failed to add MCP server: {e}")
            return OperationResult(success=False, error=str(e))

    async def list_servers(self) -> OperationResult:
        """List all servers; data is a list of ServerRecord."""
        try:
            return OperationResult(success=True, data=await self.repository.get_all())
        except Exception as e:
            logger.error(f"Failed to list MCP servers: {e}")
            return OperationResult(success=False, error=str(e))

    async def get_server(self, server_id: int) -> OperationResult:
        """Get one server; data is None when it does not exist."""
        try:
            return OperationResult(success=True, data=await self.repository.get_by_id(server_id))
        except Exception as e:
            logger.error(f"Failed to get MCP server {server_id}: {e}")
            return OperationResult(success=False, error=str(e))

    async def update_server(self, server_id: int, data: ServerUpdateSchema) -> OperationResult:
        """Replace a server's definition; success is False if it does not exist."""
        try:
            updated = await self.repository.update(
                server_id,
                data.name,
                data.kind,
                data.command_or_url,
                data.args,
                data.env,
                data.autostart,
            )
            if not updated:
                return OperationResult(success=False, error=f"MCP server {server_id} not found")
            return OperationResult(success=True)
        except Exception as e:
            logger.error(f"Failed to update MCP server {server_id}: {e}")
            return OperationResult(success=False, error=str(e))

    async def delete_server(self, server_id: int) -> OperationResult:
        """Delete a server; success is False if it does not exist."""
        try:
            deleted = await self.repository.delete(server_id)
            if not deleted:
                return OperationResult(success=False, error=f"MCP server {server_id} not found")
            return OperationResult(success=True)
        except Exception as e:
            logger.error(f"Failed to delete MCP server {server_id}: {e}")
            return OperationResult(success=False, error=str(e))

    async def bulk_import(self, json_payload: str) -> ImportResult:
        """Import an {"mcpServers": {...}} document."""
        try:
            return await self.importer.bulk_import(json_payload)
        except Exception as e:
            logger.error(f"Error in bulk import: {e}", exc_info=True)
            return ImportResult(success=False, message=f"Import failed: {e}", error_count=1)

    async def read_client_config(self, path: str) -> OperationResult:
        """Read a client's file; data is the parsed object ({} if unusable)."""
        try:
            data = await asyncio.to_thread(self.reconciler.read_file, path)
            return OperationResult(success=True, data=data)
        except Exception as e:
            logger.error(f"Error reading client config from {path}: {e}")
            return OperationResult(success=False, error=str(e))

    async def write_client_config(
        self,
        path: Optional[str],
        records: Iterable[ServerDefinition],
        client_id: str,
    ) -> OperationResult:
        """Write servers into a client's file in that client's shape."""
        try:
            written = await asyncio.to_thread(self.reconciler.write_file, path, list(records), client_id)
            return OperationResult(success=True, data=str(written))
        except Exception as e:
            logger.error(f"Error writing client config to {path}: {e}")
            return OperationResult(success=False, error=str(e))

    async def detect_clients(self) -> OperationResult:
        """Detect supported clients; data is a list of DetectedClient."""
        try:
            return OperationResult(success=True, data=await asyncio.to_thread(detect_clients))
        except Exception as e:
            logger.error(f"Error detecting clients: {e}")
            return OperationResult(success=False, error=str(e))

    async def discover_servers(self) -> OperationResult:
        """
        Servers found in every detected client's file.

        data is a list of {"entry": DiscoveredServerEntry, "is_potentially_imported": bool}.
        """
        try:
            clients = await asyncio.to_thread(detect_clients)
            entries = await asyncio.to_thread(self.reconciler.discover_clients, clients)
            existing_names = await self.repository.get_names()
            return OperationResult(success=True, data=[
                {"entry": entry, "is_potentially_imported": is_potentially_imported(entry, existing_names)}
                for entry in entries
            ])
        except Exception as e:
            logger.error(f"Error discovering servers: {e}")
            return OperationResult(success=False, error=str(e))

    async def promote_discovered(self, entry: DiscoveredServerEntry) -> OperationResult:
        """Add a discovered server; data is the new server id."""
        try:
            return OperationResult(success=True, data=await self.importer.promote_discovered(entry))
        except Exception as e:
            logger.error(f"Error importing discovered server {entry.original_name}: {e}")
            return OperationResult(success=False, error=str(e))
