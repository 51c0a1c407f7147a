import sqlite3
from pathlib import Path

import pytest
import pytest_asyncio

from database import create_engine, open_store
from migrations.server_schema import ensure_schema
from modules.catalog.importer import ImportReconciler
from modules.catalog.repository import ServerRepository
from modules.clients.reconciler import ClientConfigReconciler


def sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


async def run_ensure_schema(db_path: Path):
    """Run the migration once in its own transaction, as open_store does."""
    engine = create_engine(sqlite_url(db_path))
    try:
        async with engine.begin() as conn:
            return await conn.run_sync(ensure_schema)
    finally:
        await engine.dispose()


def table_columns(db_path: Path, table: str = "servers") -> dict:
    with sqlite3.connect(db_path) as conn:
        return {row[1]: {"type": row[2], "notnull": row[3]} for row in conn.execute(f"PRAGMA table_info({table})")}


def table_names(db_path: Path) -> set:
    with sqlite3.connect(db_path) as conn:
        return {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}


def fetch_rows(db_path: Path, sql: str, params=()) -> list:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        return [dict(row) for row in conn.execute(sql, params)]
    finally:
        conn.close()


def create_legacy_store(db_path: Path, ddl: str, rows: list) -> None:
    """Create a servers table in an older layout and fill it."""
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(ddl)
        for row in rows:
            columns = ", ".join(row)
            placeholders = ", ".join("?" for _ in row)
            conn.execute(f"INSERT INTO servers ({columns}) VALUES ({placeholders})", tuple(row.values()))
        conn.commit()
    finally:
        conn.close()


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "mcp-manager.sqlite3"


@pytest_asyncio.fixture
async def store(db_path):
    store = await open_store(sqlite_url(db_path))
    yield store
    await store.close()


@pytest.fixture
def repository(store) -> ServerRepository:
    return ServerRepository(store)


@pytest.fixture
def importer(repository) -> ImportReconciler:
    return ImportReconciler(repository)


@pytest.fixture
def reconciler() -> ClientConfigReconciler:
    return ClientConfigReconciler(indent=2)
