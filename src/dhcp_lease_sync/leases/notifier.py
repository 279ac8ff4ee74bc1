"""Ordered fan-out of coalesced lease decisions.

The engine hands every decision to a single sink. ``LeaseNotifier`` is that
sink when more than one consumer is interested (the persistence bridge,
audit logging, tests): subscribers are awaited one after another, in
subscription order, so a decision is fully handled before the next one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Protocol
from uuid import uuid4

from dhcp_lease_sync.leases.record import LeaseEventKind, LeaseRecord

logger = logging.getLogger(__name__)

# Type alias for subscriber callbacks
NotifyCallback = Callable[[LeaseEventKind, LeaseRecord], Awaitable[bool]]


class LeaseSink(Protocol):
    """Anything the engine can deliver a lease decision to."""

    async def notify(self, kind: LeaseEventKind, record: LeaseRecord) -> bool: ...


@dataclass
class Subscription:
    """Represents an active notifier subscription."""

    id: str = field(default_factory=lambda: uuid4().hex)
    kinds: frozenset[LeaseEventKind] = frozenset(LeaseEventKind)
    callback: NotifyCallback | None = None


class LeaseNotifier:
    """Sequential pub/sub for lease decisions."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def __len__(self) -> int:
        return len(self._subscriptions)

    async def notify(self, kind: LeaseEventKind, record: LeaseRecord) -> bool:
        """Deliver a decision to matching subscribers. True if all succeeded."""
        ok = True
        for sub in list(self._subscriptions):
            if kind not in sub.kinds or sub.callback is None:
                continue
            try:
                result = await sub.callback(kind, record)
            except Exception:
                logger.exception(
                    "Lease subscriber %s failed on %s %s", sub.id, kind.value, record.hwaddr
                )
                ok = False
                continue
            if result is False:
                ok = False
        return ok

    def subscribe(
        self,
        callback: NotifyCallback,
        kinds: list[LeaseEventKind] | None = None,
    ) -> Subscription:
        """Register a callback, optionally limited to some decision kinds.

        Returns a ``Subscription`` that can be passed to ``unsubscribe()``.
        """
        sub = Subscription(
            kinds=frozenset(kinds) if kinds else frozenset(LeaseEventKind),
            callback=callback,
        )
        self._subscriptions.append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription."""
        self._subscriptions = [
            s for s in self._subscriptions if s.id != subscription.id
        ]
