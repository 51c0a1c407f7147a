"""
Server repository: CRUD over the managed server catalogue.

Each call opens its own session on the Store it is bound to and fails
independently; an error in one call never affects the store or later calls.
"""

from typing import Dict, List, Optional, Sequence, Set, Union

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from database import Store
from models.server import ServerKind, ServerModel
from modules.catalog.exceptions import DuplicateNameError, ServerValidationError
from schemas.server import ServerRecord
from utils.logging import get_logger

logger = get_logger("catalog.repository")


def _payload_columns(
    name: str,
    kind: Union[ServerKind, str],
    command_or_url: Optional[str],
    args: Optional[Sequence[str]],
    env: Optional[Dict[str, str]],
    autostart: bool,
) -> dict:
    """
    Validate input and build column values honouring payload exclusivity.

    Only command and args are stored for command servers and only url for url
    servers; the other payload columns are stored as NULL.
    """
    if not name or not name.strip():
        raise ServerValidationError("Server name is required.")

    try:
        kind = ServerKind(kind)
    except ValueError:
        raise ServerValidationError(f"Invalid server kind: {kind}. Must be 'command' or 'url'")

    if not isinstance(command_or_url, str) or not command_or_url.strip():
        raise ServerValidationError("Command or URL must be provided for the server type.")

    is_command = kind == ServerKind.COMMAND
    return {
        "name": name,
        "kind": kind.value,
        "command": command_or_url if is_command else None,
        "url": None if is_command else command_or_url,
        "args": list(args) if is_command and args else None,
        "env": dict(env) if env else None,
        "autostart": bool(autostart),
    }


def _is_unique_violation(error: IntegrityError) -> bool:
    return "UNIQUE" in str(error.orig).upper()


class ServerRepository:
    """Repository for managed MCP servers."""

    def __init__(self, store: Store):
        self.store = store

    async def add(
        self,
        name: str,
        kind: Union[ServerKind, str],
        command_or_url: str,
        args: Optional[Sequence[str]] = None,
        env: Optional[Dict[str, str]] = None,
        autostart: bool = False,
    ) -> int:
        """
        Add a server to the catalogue.

        Args:
            name: Unique server name
            kind: "command" or "url"
            command_or_url: Command for command servers, URL for url servers
            args: Command arguments (ignored for url servers)
            env: Environment variables
            autostart: Start the server automatically

        Returns:
            int: Id of the new server

        Raises:
            ServerValidationError: If the input is malformed
            DuplicateNameError: If a server with this name already exists
        """
        values = _payload_columns(name, kind, command_or_url, args, env, autostart)

        async with self.store.session() as session:
            server = ServerModel(**values)
            session.add(server)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if _is_unique_violation(e):
                    raise DuplicateNameError(name) from e
                raise

            logger.info(f"Created MCP server '{server.name}' ({server.id})")
            return server.id

    async def get_all(self) -> List[ServerRecord]:
        """
        Get all servers.

        Returns:
            List of ServerRecord instances ordered by id
        """
        async with self.store.session() as session:
            result = await session.execute(select(ServerModel).order_by(ServerModel.id))
            return [ServerRecord.from_model(server) for server in result.scalars().all()]

    async def get_by_id(self, server_id: int) -> Optional[ServerRecord]:
        """
        Get a single server.

        Args:
            server_id: Server id

        Returns:
            ServerRecord or None if not found
        """
        async with self.store.session() as session:
            server = await session.get(ServerModel, server_id)
            if server is None:
                return None
            return ServerRecord.from_model(server)

    async def get_names(self) -> Set[str]:
        """Names of all managed servers."""
        async with self.store.session() as session:
            result = await session.execute(select(ServerModel.name))
            return set(result.scalars().all())

    async def update(
        self,
        server_id: int,
        name: str,
        kind: Union[ServerKind, str],
        command_or_url: str,
        args: Optional[Sequence[str]] = None,
        env: Optional[Dict[str, str]] = None,
        autostart: bool = False,
    ) -> bool:
        """
        Replace an existing server's definition.

        createdAt is left untouched and updatedAt is refreshed.

        Returns:
            True if updated, False if not found

        Raises:
            ServerValidationError: If the input is malformed
            DuplicateNameError: If another server already holds the new name
        """
        values = _payload_columns(name, kind, command_or_url, args, env, autostart)

        async with self.store.session() as session:
            try:
                result = await session.execute(
                    update(ServerModel).where(ServerModel.id == server_id).values(**values)
                )
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if _is_unique_violation(e):
                    raise DuplicateNameError(name) from e
                raise

        if result.rowcount == 0:
            logger.info(f"MCP server {server_id} not found for update")
            return False

        logger.info(f"Updated MCP server {server_id}")
        return True

    async def delete(self, server_id: int) -> bool:
        """
        Delete a server.

        Args:
            server_id: Server id

        Returns:
            True if deleted, False if not found
        """
        async with self.store.session() as session:
            result = await session.execute(delete(ServerModel).where(ServerModel.id == server_id))
            await session.commit()

        if result.rowcount == 0:
            return False

        logger.info(f"Deleted MCP server {server_id}")
        return True
