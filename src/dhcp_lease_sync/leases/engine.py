"""Lease reconciliation engine.

Pipeline stages, run to completion for every incoming lease event:
1. Mutate the primary lease index (insert / overwrite / remove)
2. Rebuild the coalesced per-device view from the whole index
3. Diff against the previous view into ACQUIRED / RELEASED decisions
4. Deliver each decision to the sink, one at a time, in traversal order
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from dhcp_lease_sync.leases.hwaddr import HardwareAddress
from dhcp_lease_sync.leases.index import PrimaryLeaseIndex
from dhcp_lease_sync.leases.notifier import LeaseSink
from dhcp_lease_sync.leases.reconciler import CoalescingReconciler
from dhcp_lease_sync.leases.record import (
    LeaseEvent,
    LeaseEventKind,
    LeaseNotification,
    LeaseRecord,
)

logger = logging.getLogger(__name__)


class LeaseEngine:
    """Owns both lease indexes and drives the sink.

    Parameters
    ----------
    sink:
        Receives every coalesced decision (``LeaseNotifier``,
        ``PersistenceBridge`` or anything with a matching ``notify``).
    coalesce:
        Collapse the index to one lease per device before notifying. When
        False every event is passed to the sink as-is, which is what a store
        keeping one row per (device, address) needs.
    """

    def __init__(self, sink: LeaseSink, coalesce: bool = True) -> None:
        self._sink = sink
        self._coalesce = coalesce
        self._index = PrimaryLeaseIndex()
        self._reconciler = CoalescingReconciler()
        self._lock = asyncio.Lock()

    @property
    def index(self) -> PrimaryLeaseIndex:
        return self._index

    @property
    def coalescing(self) -> bool:
        return self._coalesce

    def coalesced(self) -> Mapping[HardwareAddress, LeaseRecord]:
        """Snapshot of the per-device view: hwaddr -> surviving record.

        Always empty when the engine does not coalesce.
        """
        return {hw: entry.record for hw, entry in self._reconciler.view.items()}

    async def handle_event(self, event: LeaseEvent) -> bool:
        return await self.handle(event.released, event.record)

    async def handle(self, released: bool, record: LeaseRecord) -> bool:
        """Apply one lease notification and deliver the resulting decisions.

        Returns False if any delivery to the sink failed. In-memory state is
        kept either way; the next change for that device resyncs the store.
        """
        async with self._lock:
            logger.debug(
                "Lease event: %s %s/%s time=%d",
                "released" if released else "acquired",
                record.hwaddr,
                record.ipaddr,
                record.lease_time,
            )
            if released:
                self._index.remove(record.hwaddr, record.ipaddr)
            else:
                self._index.upsert(record)

            if not self._coalesce:
                kind = LeaseEventKind.RELEASED if released else LeaseEventKind.ACQUIRED
                return await self._deliver([LeaseNotification(kind, record)])

            notifications = self._reconciler.rebuild(self._index)
            return await self._deliver(notifications)

    async def _deliver(self, notifications: list[LeaseNotification]) -> bool:
        ok = True
        for notification in notifications:
            if not await self._sink.notify(notification.kind, notification.record):
                logger.warning(
                    "Lease sink rejected %s for %s (%s)",
                    notification.kind.value,
                    notification.record.hwaddr,
                    notification.record.ipaddr,
                )
                ok = False
        return ok
