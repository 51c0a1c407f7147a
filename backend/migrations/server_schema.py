"""
Schema migration for the servers table.

Brings the physical servers table to the layout described by ServerModel,
whatever state an older build left it in:

1. Table missing: create it directly.
2. Table current: nothing to do.
3. Only additive columns missing: ALTER TABLE ... ADD COLUMN in place.
4. Structurally incompatible (payload column NOT NULL, non-unique name,
   legacy "type" column, column that SQLite cannot add in place): rebuild by
   rename, create, copy, drop inside a savepoint.

Column detection always reads the live table metadata, never ServerModel,
because the store may have been created by an older build.

Run through AsyncConnection.run_sync inside engine.begin(); see
database.open_store().
"""

import enum
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import Boolean, Column, Text, column, func, insert, inspect, literal, null, select, table, text
from sqlalchemy.engine import Connection
from sqlalchemy.sql.elements import ColumnElement

from models.server import ServerKind, ServerModel
from modules.catalog.exceptions import MigrationError
from utils.logging import log_migration_event

TABLE_NAME = ServerModel.__tablename__
ASIDE_TABLE_NAME = f"{TABLE_NAME}_old_migration"

# Optional in the target layout, required in layouts that predate the kind column
PAYLOAD_COLUMNS = ("command", "url")

# Kind column name used by builds before it was renamed
LEGACY_KIND_COLUMN = "type"


class MigrationOutcome(str, enum.Enum):
    """What ensure_schema did to the servers table."""
    CREATED = "created"
    UNCHANGED = "unchanged"
    ALTERED = "altered"
    REBUILT = "rebuilt"


# Columns SQLite can add without rewriting rows: nullable, or with a constant default.
# createdAt/updatedAt default to CURRENT_TIMESTAMP and therefore need a rebuild.
ADDITIVE_COLUMNS: Dict[str, Callable[[], Column]] = {
    "kind": lambda: Column("kind", Text, nullable=False, server_default=ServerKind.COMMAND.value),
    "command": lambda: Column("command", Text, nullable=True),
    "url": lambda: Column("url", Text, nullable=True),
    "args": lambda: Column("args", Text, nullable=True),
    "env": lambda: Column("env", Text, nullable=True),
    "autostart": lambda: Column("autostart", Boolean, server_default=text("0")),
}


@dataclass(frozen=True)
class ColumnMapping:
    """
    How one target column is filled during a rebuild.

    The first source column present in the old table is copied; when none is
    present the fallback expression is used. A mapping without fallback is
    required and aborts the rebuild if no source exists.
    """

    target: str
    sources: Tuple[str, ...]
    fallback: Optional[Callable[[], ColumnElement]] = None

    def source_expression(self, source_table) -> ColumnElement:
        for source in self.sources:
            if source in source_table.c:
                return source_table.c[source]
        if self.fallback is None:
            raise MigrationError(
                f"Cannot rebuild '{TABLE_NAME}': old table has no column for required '{self.target}'"
            )
        return self.fallback()


REBUILD_MAPPING: Tuple[ColumnMapping, ...] = (
    ColumnMapping("id", ("id",)),
    ColumnMapping("name", ("name",)),
    ColumnMapping("kind", ("kind", LEGACY_KIND_COLUMN), lambda: literal(ServerKind.COMMAND.value)),
    ColumnMapping("command", ("command",), null),
    ColumnMapping("url", ("url",), null),
    ColumnMapping("args", ("args",), null),
    ColumnMapping("env", ("env",), null),
    ColumnMapping("autostart", ("autostart",), lambda: literal(0)),
    ColumnMapping("createdAt", ("createdAt",), func.current_timestamp),
    ColumnMapping("updatedAt", ("updatedAt",), func.current_timestamp),
)


def _operations(connection: Connection) -> Operations:
    """Alembic operations bound to the caller's connection and transaction."""
    return Operations(MigrationContext.configure(connection))


def _name_is_unique(connection: Connection) -> bool:
    inspector = inspect(connection)
    for constraint in inspector.get_unique_constraints(TABLE_NAME):
        if constraint["column_names"] == ["name"]:
            return True
    for index in inspector.get_indexes(TABLE_NAME, include_auto_indexes=True):
        if index["unique"] and index["column_names"] == ["name"]:
            return True
    return False


def rebuild_reasons(connection: Connection, live_columns: Dict[str, dict]) -> List[str]:
    """
    List the incompatibilities that cannot be fixed with ADD COLUMN.

    Args:
        connection: Connection to inspect
        live_columns: Column info of the existing table, keyed by name

    Returns:
        List of human-readable reasons; empty when no rebuild is needed
    """
    reasons = []

    for name in PAYLOAD_COLUMNS:
        info = live_columns.get(name)
        if info is not None and not info["nullable"]:
            reasons.append(f"'{name}' column is NOT NULL")

    if LEGACY_KIND_COLUMN in live_columns and "kind" not in live_columns:
        reasons.append(f"legacy '{LEGACY_KIND_COLUMN}' column must be carried into 'kind'")

    for target in ServerModel.__table__.columns:
        if target.name not in live_columns and target.name not in ADDITIVE_COLUMNS:
            reasons.append(f"'{target.name}' column is missing and cannot be added in place")

    if "name" in live_columns and not _name_is_unique(connection):
        reasons.append("'name' column is not unique")

    return reasons


def _rebuild(connection: Connection, live_columns: Dict[str, dict], reasons: List[str]) -> None:
    log_migration_event("rebuild_started", reasons=reasons)

    try:
        with connection.begin_nested():
            op = _operations(connection)

            op.rename_table(TABLE_NAME, ASIDE_TABLE_NAME)
            log_migration_event("rebuild_renamed", aside_table=ASIDE_TABLE_NAME)

            ServerModel.__table__.create(connection)
            log_migration_event("rebuild_created")

            source = table(ASIDE_TABLE_NAME, *(column(name) for name in live_columns))
            copy = insert(ServerModel.__table__).from_select(
                [mapping.target for mapping in REBUILD_MAPPING],
                select(
                    *(mapping.source_expression(source).label(mapping.target) for mapping in REBUILD_MAPPING)
                ).select_from(source),
            )
            result = connection.execute(copy)
            log_migration_event("rebuild_copied", rows=result.rowcount)

            op.drop_table(ASIDE_TABLE_NAME)
            log_migration_event("rebuild_dropped", aside_table=ASIDE_TABLE_NAME)
    except MigrationError:
        log_migration_event("rebuild_rolled_back")
        raise
    except Exception as e:
        log_migration_event("rebuild_rolled_back", error=str(e))
        raise MigrationError(f"Rebuild of '{TABLE_NAME}' failed and was rolled back: {e}") from e


def ensure_schema(connection: Connection) -> MigrationOutcome:
    """
    Bring the servers table to the current layout.

    Idempotent: running it on an up-to-date table changes nothing.

    Args:
        connection: Sync connection with an open transaction

    Returns:
        MigrationOutcome describing what was done

    Raises:
        MigrationError: If the table cannot be migrated; nothing is changed
    """
    inspector = inspect(connection)

    if not inspector.has_table(TABLE_NAME):
        ServerModel.__table__.create(connection)
        log_migration_event("created")
        return MigrationOutcome.CREATED

    live_columns = {info["name"]: info for info in inspector.get_columns(TABLE_NAME)}

    reasons = rebuild_reasons(connection, live_columns)
    if reasons:
        _rebuild(connection, live_columns, reasons)
        log_migration_event("rebuilt")
        return MigrationOutcome.REBUILT

    missing = [name for name in ADDITIVE_COLUMNS if name not in live_columns]
    if not missing:
        log_migration_event("unchanged")
        return MigrationOutcome.UNCHANGED

    op = _operations(connection)
    for name in missing:
        op.add_column(TABLE_NAME, ADDITIVE_COLUMNS[name]())
        log_migration_event("column_added", column=name)

    return MigrationOutcome.ALTERED
