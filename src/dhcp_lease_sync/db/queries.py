"""Typed async query helpers for the leased-IP table.

Every function takes an ``aiosqlite.Connection`` as its first argument and
returns plain dicts or scalar values. Selection predicates are passed as
``{column: value}`` mappings, ANDed together; column names are checked
against the table definition before they reach SQL.
"""

from __future__ import annotations

from typing import Any, Mapping

import aiosqlite

from dhcp_lease_sync.db.schema import LEASED_IP_COLUMNS, LEASED_IP_TABLE


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _fetchone(
    db: aiosqlite.Connection, sql: str, params: tuple = ()
) -> dict[str, Any] | None:
    cursor = await db.execute(sql, params)
    row = await cursor.fetchone()
    if row is None:
        return None
    columns = [desc[0] for desc in cursor.description]
    return dict(zip(columns, row))


async def _fetchall(
    db: aiosqlite.Connection, sql: str, params: tuple = ()
) -> list[dict[str, Any]]:
    cursor = await db.execute(sql, params)
    rows = await cursor.fetchall()
    if not rows:
        return []
    columns = [desc[0] for desc in cursor.description]
    return [dict(zip(columns, row)) for row in rows]


def _check_columns(columns: Mapping[str, Any]) -> None:
    unknown = [c for c in columns if c not in LEASED_IP_COLUMNS]
    if unknown:
        raise ValueError(f"unknown {LEASED_IP_TABLE} column(s): {', '.join(unknown)}")


def _where_clause(where: Mapping[str, Any]) -> tuple[str, list[Any]]:
    if not where:
        raise ValueError("an empty selection would match every row")
    _check_columns(where)
    conditions = [f"{column} = ?" for column in where]
    return " AND ".join(conditions), list(where.values())


# ---------------------------------------------------------------------------
# Leased-IP queries
# ---------------------------------------------------------------------------

async def upsert_leased_ip_where(
    db: aiosqlite.Connection,
    where: Mapping[str, Any],
    row: Mapping[str, Any],
) -> bool:
    """Update rows matching *where* with *row*, or insert *row* if none match.

    Returns True if a new row was inserted, False if existing rows were
    updated.
    """
    _check_columns(row)
    condition, params = _where_clause(where)

    assignments = ", ".join(f"{column} = ?" for column in row)
    cursor = await db.execute(
        f"UPDATE {LEASED_IP_TABLE} SET {assignments} WHERE {condition}",
        (*row.values(), *params),
    )
    if cursor.rowcount > 0:
        await db.commit()
        return False

    columns = ", ".join(row)
    placeholders = ", ".join("?" for _ in row)
    await db.execute(
        f"INSERT INTO {LEASED_IP_TABLE} ({columns}) VALUES ({placeholders})",
        tuple(row.values()),
    )
    await db.commit()
    return True


async def delete_leased_ip_where(
    db: aiosqlite.Connection,
    where: Mapping[str, Any],
) -> int:
    """Delete rows matching *where*. Returns the number of rows removed."""
    condition, params = _where_clause(where)
    cursor = await db.execute(
        f"DELETE FROM {LEASED_IP_TABLE} WHERE {condition}", tuple(params)
    )
    await db.commit()
    return cursor.rowcount


async def get_leased_ip(
    db: aiosqlite.Connection, hwaddr: str
) -> dict[str, Any] | None:
    """Get the lease row for a (normalized) hardware address."""
    return await _fetchone(
        db,
        f"SELECT * FROM {LEASED_IP_TABLE} WHERE hwaddr = ? ORDER BY id LIMIT 1",
        (hwaddr,),
    )


async def list_leased_ips(
    db: aiosqlite.Connection,
    *,
    hwaddr: str | None = None,
) -> list[dict[str, Any]]:
    """List lease rows ordered by hardware address, optionally for one device."""
    if hwaddr is not None:
        return await _fetchall(
            db,
            f"SELECT * FROM {LEASED_IP_TABLE} WHERE hwaddr = ? ORDER BY inet_addr",
            (hwaddr,),
        )
    return await _fetchall(
        db, f"SELECT * FROM {LEASED_IP_TABLE} ORDER BY hwaddr, inet_addr"
    )


async def count_leased_ips(db: aiosqlite.Connection) -> int:
    """Return the number of rows in the leased-IP table."""
    cursor = await db.execute(f"SELECT COUNT(*) FROM {LEASED_IP_TABLE}")
    row = await cursor.fetchone()
    return row[0] if row else 0
