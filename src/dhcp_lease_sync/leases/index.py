"""Primary lease index: one entry per (hardware address, IP address) pair.

Keeps every concurrently active IP assignment of a device. Traversal is
ordered by hardware address, then IP address, so all entries of one device
are adjacent and the reconciler can group them in a single walk.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from dhcp_lease_sync.leases.hwaddr import HardwareAddress
from dhcp_lease_sync.leases.record import IPAddress, LeaseRecord, ip_sort_key

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class LeaseEntry:
    """Primary index entry. Identity matters: the coalesced view points at it."""

    record: LeaseRecord
    in_secondary_view: bool = False
    pending_update: bool = False

    @property
    def hwaddr(self) -> HardwareAddress:
        return self.record.hwaddr

    @property
    def ipaddr(self) -> IPAddress:
        return self.record.ipaddr

    @property
    def lease_time(self) -> int:
        return self.record.lease_time


def _sort_key(key: tuple[HardwareAddress, IPAddress]) -> tuple[bytes, tuple[int, int]]:
    hwaddr, ipaddr = key
    return (hwaddr.octets, ip_sort_key(ipaddr))


class PrimaryLeaseIndex:
    """Uniquely-keyed map of (hwaddr, ipaddr) -> ``LeaseEntry``."""

    def __init__(self) -> None:
        self._entries: dict[tuple[HardwareAddress, IPAddress], LeaseEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[LeaseEntry]:
        return iter(self.entries())

    def get(self, hwaddr: HardwareAddress, ipaddr: IPAddress) -> LeaseEntry | None:
        return self._entries.get((hwaddr, ipaddr))

    def upsert(self, record: LeaseRecord) -> LeaseEntry:
        """Insert a new entry, or overwrite an existing one and mark it pending.

        The pending flag is set on every overwrite, whether or not the
        content actually changed.
        """
        entry = self._entries.get(record.key)
        if entry is None:
            entry = LeaseEntry(record=record)
            self._entries[record.key] = entry
            logger.debug("Lease index: added %s/%s", record.hwaddr, record.ipaddr)
            return entry

        entry.record = record
        entry.pending_update = True
        logger.debug("Lease index: updated %s/%s", record.hwaddr, record.ipaddr)
        return entry

    def remove(self, hwaddr: HardwareAddress, ipaddr: IPAddress) -> bool:
        """Delete the entry for (hwaddr, ipaddr). Returns False if there is none."""
        entry = self._entries.pop((hwaddr, ipaddr), None)
        if entry is None:
            logger.error(
                "Lease index: error removing non-existent lease: %s:%s", hwaddr, ipaddr
            )
            return False

        # The reconciler treats a view entry with this flag cleared as withdrawn.
        if entry.in_secondary_view:
            entry.in_secondary_view = False
            logger.debug("Lease index: %s/%s withdrawn from coalesced view", hwaddr, ipaddr)
        logger.debug("Lease index: removed %s/%s", hwaddr, ipaddr)
        return True

    def entries(self) -> list[LeaseEntry]:
        """All entries ordered by hardware address, then IP address."""
        return [self._entries[k] for k in sorted(self._entries, key=_sort_key)]

    def group_by_hwaddr(self) -> dict[HardwareAddress, list[LeaseEntry]]:
        """Entries grouped per device, devices and entries in traversal order."""
        groups: dict[HardwareAddress, list[LeaseEntry]] = {}
        for entry in self.entries():
            groups.setdefault(entry.hwaddr, []).append(entry)
        return groups

    def records(self) -> list[LeaseRecord]:
        return [entry.record for entry in self.entries()]
