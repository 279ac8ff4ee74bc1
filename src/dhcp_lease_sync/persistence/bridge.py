"""Persistence bridge: coalesced lease decisions -> ``dhcp_leased_ip`` rows.

ACQUIRED decisions become a conditional upsert, RELEASED decisions a
conditional delete, both selected by the lower-cased hardware address (and
by the textual IP address as well when ``match_inet_addr`` is on).

Store failures are logged and reported as ``False``; nothing is retried
and the engine's in-memory view is left alone.
"""

from __future__ import annotations

import logging

import aiosqlite

from dhcp_lease_sync.db.queries import delete_leased_ip_where, upsert_leased_ip_where
from dhcp_lease_sync.leases.record import LeaseEventKind, LeaseRecord
from dhcp_lease_sync.models import DHCPLeasedIP

logger = logging.getLogger(__name__)


class PersistenceBridge:
    """Writes lease decisions to the leased-IP table.

    Parameters
    ----------
    db:
        Open aiosqlite connection with the schema applied.
    match_inet_addr:
        Select rows by hardware address *and* IP address, giving one row per
        (device, address) instead of one row per device.
    """

    def __init__(self, db: aiosqlite.Connection, match_inet_addr: bool = False) -> None:
        self._db = db
        self._match_inet_addr = match_inet_addr

    async def notify(self, kind: LeaseEventKind, record: LeaseRecord) -> bool:
        released = kind is LeaseEventKind.RELEASED
        skip = record.ipaddr.is_unspecified

        logger.info(
            "%s DHCP lease: MAC:%s IP:%s Hostname:%s Time:%d%s",
            "Released" if released else "Acquired",
            record.hwaddr,
            record.ipaddr,
            record.hostname,
            record.lease_time,
            ", skipping" if skip else "",
        )
        if skip:
            return True

        row = DHCPLeasedIP.from_record(record, released=released)
        if not await self.table_update(row):
            logger.warning(
                "Error processing DHCP lease entry %s (%s), %s",
                row.hwaddr,
                row.inet_addr,
                row.hostname,
            )
            return False
        return True

    def _selection(self, row: DHCPLeasedIP) -> dict[str, str]:
        where = {"hwaddr": row.hwaddr}
        if self._match_inet_addr:
            where["inet_addr"] = row.inet_addr
        return where

    async def table_update(self, row: DHCPLeasedIP) -> bool:
        """Upsert *row*, or delete its rows when ``lease_time`` is 0."""
        where = self._selection(row)
        logger.debug("Updating DHCP lease '%s'", row.hwaddr)

        if row.is_delete:
            try:
                removed = await delete_leased_ip_where(self._db, where)
            except (aiosqlite.Error, ValueError):
                logger.exception(
                    "Updating DHCP lease %s, %s (Failed to remove entry)",
                    row.inet_addr,
                    row.hwaddr,
                )
                return False
            logger.info(
                "Removed DHCP lease '%s' with '%s' '%s' '%d' (%d row(s))",
                row.hwaddr,
                row.inet_addr,
                row.hostname,
                row.lease_time,
                removed,
            )
            return True

        try:
            inserted = await upsert_leased_ip_where(self._db, where, row.as_row())
        except (aiosqlite.Error, ValueError):
            logger.exception("Updating DHCP lease %s (Failed to insert entry)", row.hwaddr)
            return False
        logger.info(
            "%s DHCP lease '%s' with '%s' '%s' '%d'",
            "Inserted" if inserted else "Updated",
            row.hwaddr,
            row.inet_addr,
            row.hostname,
            row.lease_time,
        )
        return True
