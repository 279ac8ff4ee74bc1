"""SQLite schema definitions for the leased-IP store.

One logical table, ``dhcp_leased_ip``, holds the coalesced per-device lease
view that other management processes read. ``lease_time`` follows the
store convention: 0 means "delete this row", -1 marks a fresh lease whose
remaining time rounded down to zero.
"""

from __future__ import annotations

# Current schema version -- increment when adding migrations
SCHEMA_VERSION = 2

LEASED_IP_TABLE = "dhcp_leased_ip"

# Columns of the leased-IP table, in row order
LEASED_IP_COLUMNS: tuple[str, ...] = (
    "hwaddr",
    "inet_addr",
    "hostname",
    "fingerprint",
    "vendor_class",
    "lease_time",
)

_TABLE_NAMES: list[str] = [
    LEASED_IP_TABLE,
    "schema_version",
]


def get_all_table_names() -> list[str]:
    """Return the list of all table names managed by this schema."""
    return list(_TABLE_NAMES)


async def create_all_tables(db) -> None:
    """Apply the full schema to the database.

    Convenience wrapper for tests and fresh databases. For production
    use, prefer ``apply_migrations()`` from the migrations module.
    """
    await db.executescript(SCHEMA_V1_SQL)
    await db.executescript(SCHEMA_V2_SQL)
    await db.commit()


# ---------------------------------------------------------------------------
# SQL statements for schema version 1
# ---------------------------------------------------------------------------

SCHEMA_V1_SQL = """
-- Coalesced DHCP leases, one row per device in the default policy
CREATE TABLE IF NOT EXISTS dhcp_leased_ip (
    id INTEGER PRIMARY KEY,
    hwaddr TEXT NOT NULL,
    inet_addr TEXT NOT NULL,
    hostname TEXT NOT NULL DEFAULT '',
    fingerprint TEXT NOT NULL DEFAULT '',
    vendor_class TEXT NOT NULL DEFAULT '',
    lease_time INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_leased_ip_hwaddr ON dhcp_leased_ip(hwaddr);

-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);
"""

# ---------------------------------------------------------------------------
# SQL statements for schema version 2
# ---------------------------------------------------------------------------

SCHEMA_V2_SQL = """
CREATE INDEX IF NOT EXISTS idx_leased_ip_inet ON dhcp_leased_ip(inet_addr);
"""
