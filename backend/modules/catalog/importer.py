"""
Import reconciler.

Brings servers defined outside the catalogue into it: bulk imports of a
pasted JSON document, and promotion of single entries discovered in a
client's configuration file, with deterministic name-collision resolution.
"""

import json
from typing import Collection, Optional

from modules.catalog.repository import ServerRepository
from modules.clients import codec
from schemas.catalog import ImportEntryError, ImportResult
from schemas.server import DiscoveredServerEntry, ServerDefinition, UrlPayload
from utils.logging import get_logger, log_import_event

logger = get_logger("catalog.importer")

STRUCTURE_ERROR_NAME = "JSON Structure"


def imported_name_variant(name: str, client_name: str) -> str:
    """Name used for a discovered server whose own name is taken."""
    return f"{name} (from {client_name})"


def resolve_import_name(name: str, client_name: str, existing_names: Collection[str]) -> str:
    """
    Pick a free name for a discovered server.

    "<name>" if free, else "<name> (from <client>)", else that variant with
    _1, _2, ... appended until no collision remains.

    Args:
        name: Name of the server in the client's file
        client_name: Display name of the originating client
        existing_names: Names already in the catalogue

    Returns:
        A name not in existing_names
    """
    if name not in existing_names:
        return name

    candidate = imported_name_variant(name, client_name)
    base = candidate
    suffix = 1
    while candidate in existing_names:
        candidate = f"{base}_{suffix}"
        suffix += 1
    return candidate


def is_potentially_imported(entry: DiscoveredServerEntry, existing_names: Collection[str]) -> bool:
    """True if the catalogue already holds this entry under its name or its "(from ...)" variant."""
    name = entry.definition.name
    return name in existing_names or imported_name_variant(name, entry.client_name) in existing_names


def _validate_for_import(definition: ServerDefinition) -> Optional[str]:
    payload = definition.payload
    if isinstance(payload, UrlPayload):
        if not payload.url.strip():
            return f"Missing or invalid url for server: {definition.name}"
    elif not payload.command or not payload.command.strip():
        return f"Missing or invalid command for server: {definition.name}"
    return None


class ImportReconciler:
    """Imports servers into the catalogue."""

    def __init__(self, repository: ServerRepository):
        self.repository = repository

    async def bulk_import(self, json_payload: str) -> ImportResult:
        """
        Import every entry of an {"mcpServers": {...}} document.

        Entries are validated and added one by one; a rejected entry is
        recorded and the next one is processed. Entries already added stay
        added whatever happens later.

        Args:
            json_payload: JSON text

        Returns:
            ImportResult with counts and per-entry errors
        """
        try:
            data = json.loads(json_payload)
        except (TypeError, ValueError) as e:
            return self._structural_failure(f"Invalid JSON: {e}")

        container = data.get(codec.MCP_SERVERS_KEY) if isinstance(data, dict) else None
        if not isinstance(container, dict):
            return self._structural_failure("mcpServers object not found")

        imported_count = 0
        errors = []

        for server_name, raw_entry in container.items():
            definition = codec.decode_entry(server_name, raw_entry).model_copy(update={"name": server_name})

            error = _validate_for_import(definition)
            if error is None:
                try:
                    await self.repository.add(
                        definition.name,
                        definition.kind,
                        definition.command_or_url,
                        definition.args,
                        definition.env,
                        definition.autostart,
                    )
                    imported_count += 1
                    continue
                except Exception as e:
                    error = str(e)

            errors.append(ImportEntryError(server_name=server_name, error=error))
            logger.error(f"Error importing server {server_name}: {error}")

        message = f"Imported {imported_count} server(s)."
        if errors:
            message += f" Failed to import {len(errors)} server(s)."

        log_import_event("bulk_completed", imported_count=imported_count, error_count=len(errors))
        return ImportResult(
            success=True,
            message=message,
            imported_count=imported_count,
            error_count=len(errors),
            errors=errors,
        )

    @staticmethod
    def _structural_failure(reason: str) -> ImportResult:
        log_import_event("bulk_rejected", imported_count=0, error_count=1, reason=reason)
        return ImportResult(
            success=False,
            message=f"Import failed: {reason}",
            imported_count=0,
            error_count=1,
            errors=[ImportEntryError(server_name=STRUCTURE_ERROR_NAME, error=reason)],
        )

    async def promote_discovered(self, entry: DiscoveredServerEntry) -> int:
        """
        Add a discovered server to the catalogue under a collision-free name.

        Args:
            entry: Entry discovered in a client's configuration file

        Returns:
            int: Id of the new server

        Raises:
            ServerValidationError: If the entry has no usable command or URL
            DuplicateNameError: If the resolved name was taken concurrently
        """
        definition = entry.definition
        existing_names = await self.repository.get_names()
        name = resolve_import_name(definition.name, entry.client_name, existing_names)

        server_id = await self.repository.add(
            name,
            definition.kind,
            definition.command_or_url,
            definition.args,
            definition.env,
            definition.autostart,
        )

        log_import_event("promoted", imported_count=1, name=name, client_id=entry.client_id)
        return server_id
