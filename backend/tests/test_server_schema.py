import pytest

from conftest import create_legacy_store, fetch_rows, run_ensure_schema, sqlite_url, table_columns, table_names
from database import open_store
from migrations.server_schema import ASIDE_TABLE_NAME, MigrationOutcome
from modules.catalog.exceptions import MigrationError
from modules.catalog.repository import ServerRepository

TARGET_COLUMNS = {"id", "name", "kind", "command", "url", "args", "env", "autostart", "createdAt", "updatedAt"}

# Layout written by builds that only knew command servers
COMMAND_ONLY_DDL = """
    CREATE TABLE servers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        command TEXT NOT NULL,
        args TEXT,
        env TEXT,
        autostart BOOLEAN DEFAULT FALSE,
        createdAt DATETIME DEFAULT CURRENT_TIMESTAMP,
        updatedAt DATETIME DEFAULT CURRENT_TIMESTAMP
    )
"""


async def test_creates_missing_table(db_path):
    outcome = await run_ensure_schema(db_path)

    assert outcome == MigrationOutcome.CREATED
    columns = table_columns(db_path)
    assert set(columns) == TARGET_COLUMNS
    assert columns["name"]["notnull"] == 1
    assert columns["command"]["notnull"] == 0
    assert columns["url"]["notnull"] == 0


async def test_second_run_is_a_noop(db_path):
    await run_ensure_schema(db_path)
    columns_before = table_columns(db_path)

    outcome = await run_ensure_schema(db_path)

    assert outcome == MigrationOutcome.UNCHANGED
    assert table_columns(db_path) == columns_before
    assert table_names(db_path) - {"sqlite_sequence"} == {"servers"}


async def test_rebuilds_command_only_layout(db_path):
    create_legacy_store(db_path, COMMAND_ONLY_DDL, [
        {"name": "fs", "command": "npx", "args": '["-y", "fs-server"]', "env": '{"ROOT": "/tmp"}', "autostart": 1},
        {"name": "git", "command": "uvx"},
        {"name": "time", "command": "python"},
    ])

    outcome = await run_ensure_schema(db_path)

    assert outcome == MigrationOutcome.REBUILT
    assert set(table_columns(db_path)) == TARGET_COLUMNS
    assert table_columns(db_path)["command"]["notnull"] == 0
    assert ASIDE_TABLE_NAME not in table_names(db_path)

    rows = fetch_rows(db_path, "SELECT * FROM servers ORDER BY id")
    assert len(rows) == 3
    assert [row["name"] for row in rows] == ["fs", "git", "time"]
    assert all(row["kind"] == "command" for row in rows)
    assert all(row["url"] is None for row in rows)
    assert [row["command"] for row in rows] == ["npx", "uvx", "python"]
    assert rows[0]["args"] == '["-y", "fs-server"]'


async def test_rebuilt_store_accepts_url_servers(db_path):
    create_legacy_store(db_path, COMMAND_ONLY_DDL, [{"name": "fs", "command": "npx"}])

    store = await open_store(sqlite_url(db_path))
    try:
        repository = ServerRepository(store)
        await repository.add("remote", "url", "https://example.com/mcp")
        records = {record.name: record for record in await repository.get_all()}
    finally:
        await store.close()

    assert records["fs"].payload.kind == "command"
    assert records["fs"].payload.command == "npx"
    assert records["fs"].args == []
    assert records["remote"].payload.url == "https://example.com/mcp"


async def test_rebuild_fills_missing_columns_with_defaults(db_path):
    create_legacy_store(db_path, """
        CREATE TABLE servers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            command TEXT NOT NULL
        )
    """, [{"name": "fs", "command": "npx"}])

    outcome = await run_ensure_schema(db_path)

    assert outcome == MigrationOutcome.REBUILT
    row = fetch_rows(db_path, "SELECT * FROM servers")[0]
    assert row["kind"] == "command"
    assert row["url"] is None
    assert row["args"] is None
    assert row["env"] is None
    assert row["autostart"] == 0
    assert row["createdAt"] is not None
    assert row["updatedAt"] is not None


async def test_rebuild_carries_legacy_type_column(db_path):
    create_legacy_store(db_path, """
        CREATE TABLE servers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            type TEXT NOT NULL DEFAULT 'command',
            command TEXT,
            url TEXT,
            args TEXT,
            env TEXT,
            autostart BOOLEAN DEFAULT FALSE,
            createdAt DATETIME DEFAULT CURRENT_TIMESTAMP,
            updatedAt DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """, [
        {"name": "fs", "type": "command", "command": "npx"},
        {"name": "remote", "type": "url", "url": "https://example.com/mcp"},
    ])

    outcome = await run_ensure_schema(db_path)

    assert outcome == MigrationOutcome.REBUILT
    assert "type" not in table_columns(db_path)
    rows = {row["name"]: row for row in fetch_rows(db_path, "SELECT * FROM servers")}
    assert rows["fs"]["kind"] == "command"
    assert rows["remote"]["kind"] == "url"
    assert rows["remote"]["url"] == "https://example.com/mcp"


async def test_adds_additive_columns_in_place(db_path):
    create_legacy_store(db_path, """
        CREATE TABLE servers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            command TEXT,
            args TEXT,
            createdAt DATETIME DEFAULT CURRENT_TIMESTAMP,
            updatedAt DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """, [{"name": "fs", "command": "npx", "createdAt": "2024-01-02 03:04:05"}])

    outcome = await run_ensure_schema(db_path)

    assert outcome == MigrationOutcome.ALTERED
    assert set(table_columns(db_path)) == TARGET_COLUMNS
    row = fetch_rows(db_path, "SELECT * FROM servers")[0]
    assert row["id"] == 1
    assert row["kind"] == "command"
    assert row["createdAt"] == "2024-01-02 03:04:05"
    assert await run_ensure_schema(db_path) == MigrationOutcome.UNCHANGED


async def test_failed_rebuild_leaves_store_untouched(db_path):
    # Duplicate names cannot be copied into the unique target column
    create_legacy_store(db_path, """
        CREATE TABLE servers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            command TEXT NOT NULL
        )
    """, [{"name": "fs", "command": "npx"}, {"name": "fs", "command": "uvx"}])
    columns_before = table_columns(db_path)

    with pytest.raises(MigrationError):
        await run_ensure_schema(db_path)

    assert table_columns(db_path) == columns_before
    assert ASIDE_TABLE_NAME not in table_names(db_path)
    rows = fetch_rows(db_path, "SELECT command FROM servers ORDER BY id")
    assert [row["command"] for row in rows] == ["npx", "uvx"]


async def test_open_store_fails_without_name_column(db_path):
    create_legacy_store(db_path, """
        CREATE TABLE servers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            command TEXT NOT NULL
        )
    """, [{"command": "npx"}])

    with pytest.raises(MigrationError):
        await open_store(sqlite_url(db_path))

    assert set(table_columns(db_path)) == {"id", "command"}
    assert ASIDE_TABLE_NAME not in table_names(db_path)
