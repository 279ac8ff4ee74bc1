# tests/integration/conftest.py
import aiosqlite
import pytest_asyncio

from dhcp_lease_sync.db.migrations import apply_migrations


@pytest_asyncio.fixture
async def db():
    """Create an in-memory SQLite database with the schema applied."""
    conn = await aiosqlite.connect(":memory:")
    conn.row_factory = aiosqlite.Row
    await apply_migrations(conn)
    yield conn
    await conn.close()
