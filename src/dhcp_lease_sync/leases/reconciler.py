"""Coalescing reconciler: one surviving lease per device.

Every pass rebuilds the per-device view from the full primary index and
diffs it against the previous view. Decisions, per hardware address:

* new device          -> merge its entries, emit ACQUIRED for the survivor
* device gone         -> emit RELEASED with the previous survivor
* device persists     -> fold the previous survivor against each candidate
                         in traversal order; a strictly longer lease takes
                         over silently, a pending overwrite of the current
                         survivor triggers one ACQUIRED refresh
* survivor withdrawn  -> the released pair was the survivor but the device
                         still holds other addresses; merge what is left
                         and emit ACQUIRED for the new survivor

A device yields at most one notification per pass.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from dhcp_lease_sync.leases.hwaddr import HardwareAddress
from dhcp_lease_sync.leases.index import LeaseEntry, PrimaryLeaseIndex
from dhcp_lease_sync.leases.record import LeaseEventKind, LeaseNotification

logger = logging.getLogger(__name__)


def _merge(survivor: LeaseEntry, candidates: Iterable[LeaseEntry]) -> tuple[LeaseEntry, bool]:
    """Fold *survivor* against *candidates*; return (survivor, refresh_needed)."""
    refresh = False
    for candidate in candidates:
        if candidate.lease_time > survivor.lease_time:
            survivor = candidate
        elif survivor.pending_update:
            survivor.pending_update = False
            refresh = True
    return survivor, refresh


class CoalescingReconciler:
    """Owns the secondary (per-device) view and computes notification diffs."""

    def __init__(self) -> None:
        self._view: dict[HardwareAddress, LeaseEntry] = {}

    def __len__(self) -> int:
        return len(self._view)

    @property
    def view(self) -> Mapping[HardwareAddress, LeaseEntry]:
        return MappingProxyType(self._view)

    def survivor(self, hwaddr: HardwareAddress) -> LeaseEntry | None:
        return self._view.get(hwaddr)

    def _accept(self, hwaddr: HardwareAddress, entry: LeaseEntry) -> None:
        previous = self._view.get(hwaddr)
        if previous is not None and previous is not entry:
            previous.in_secondary_view = False
        entry.in_secondary_view = True
        self._view[hwaddr] = entry

    def rebuild(self, index: PrimaryLeaseIndex) -> list[LeaseNotification]:
        """Run a full coalescing pass and return the resulting notifications."""
        groups = index.group_by_hwaddr()
        devices = sorted(set(groups) | set(self._view), key=lambda hw: hw.octets)

        notifications: list[LeaseNotification] = []
        for hwaddr in devices:
            previous = self._view.get(hwaddr)
            candidates = groups.get(hwaddr, [])

            if not candidates:
                # previous cannot be None here: hwaddr came from one of the two sides
                del self._view[hwaddr]
                previous.in_secondary_view = False
                logger.debug("Coalesce: %s gone", hwaddr)
                notifications.append(
                    LeaseNotification(LeaseEventKind.RELEASED, previous.record)
                )
                continue

            if previous is None or not previous.in_secondary_view:
                survivor, _ = _merge(candidates[0], candidates[1:])
                survivor.pending_update = False
                self._accept(hwaddr, survivor)
                logger.debug(
                    "Coalesce: %s %s via %s",
                    hwaddr,
                    "new" if previous is None else "re-elected",
                    survivor.ipaddr,
                )
                notifications.append(
                    LeaseNotification(LeaseEventKind.ACQUIRED, survivor.record)
                )
                continue

            survivor, refresh = _merge(previous, candidates)
            # a silent takeover surfaces nothing; the survivor carries no pending work
            survivor.pending_update = False
            if survivor is not previous:
                logger.debug(
                    "Coalesce: %s taken over by %s (lease %d > %d)",
                    hwaddr,
                    survivor.ipaddr,
                    survivor.lease_time,
                    previous.lease_time,
                )
                self._accept(hwaddr, survivor)
            if refresh:
                logger.debug("Coalesce: %s refreshed", hwaddr)
                notifications.append(
                    LeaseNotification(LeaseEventKind.ACQUIRED, survivor.record)
                )

        return notifications
