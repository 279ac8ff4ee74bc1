"""Lease records, lease events and the JSON payload parser.

A ``LeaseEvent`` is what the lease event source hands to the engine; a
``LeaseNotification`` is what the engine hands to the sink after coalescing.
Both carry an immutable ``LeaseRecord``.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Union

from dhcp_lease_sync.leases.hwaddr import HardwareAddress

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class LeaseEventKind(str, Enum):
    ACQUIRED = "acquired"
    RELEASED = "released"


class InvalidLeaseEvent(ValueError):
    """Raised when a lease event payload cannot be turned into a record."""


def ip_sort_key(ipaddr: IPAddress) -> tuple[int, int]:
    """Ordering key for IP addresses: version first, then numeric value."""
    return (ipaddr.version, int(ipaddr))


@dataclass(frozen=True)
class LeaseRecord:
    """A full DHCP lease as reported by the lease event source."""

    hwaddr: HardwareAddress
    ipaddr: IPAddress
    lease_time: int
    hostname: str = ""
    vendor_class: str = ""
    fingerprint: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.hwaddr, HardwareAddress):
            raise ValueError(f"hwaddr must be a HardwareAddress, got {type(self.hwaddr).__name__}")
        if not isinstance(self.ipaddr, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            raise ValueError(f"ipaddr must be an IP address, got {type(self.ipaddr).__name__}")
        if isinstance(self.lease_time, bool) or not isinstance(self.lease_time, int):
            raise ValueError(f"lease_time must be an integer, got {self.lease_time!r}")
        for name in ("hostname", "vendor_class", "fingerprint"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ValueError(f"{name} must be text, got {type(value).__name__}")

    @property
    def key(self) -> tuple[HardwareAddress, IPAddress]:
        return (self.hwaddr, self.ipaddr)

    def with_lease_time(self, lease_time: int) -> LeaseRecord:
        return replace(self, lease_time=lease_time)

    @classmethod
    def build(
        cls,
        hwaddr: HardwareAddress | str,
        ipaddr: IPAddress | str,
        lease_time: int,
        hostname: str | None = "",
        vendor_class: str | None = "",
        fingerprint: str | None = "",
    ) -> LeaseRecord:
        """Construct a record from loosely-typed values (strings for addresses).

        Raises ``ValueError`` for values of the wrong type.
        """
        if not isinstance(hwaddr, HardwareAddress):
            hwaddr = HardwareAddress.parse(hwaddr)
        if isinstance(ipaddr, str):
            ipaddr = ipaddress.ip_address(ipaddr.strip())
        if isinstance(lease_time, bool):
            raise ValueError(f"lease_time must be an integer, got {lease_time!r}")
        return cls(
            hwaddr=hwaddr,
            ipaddr=ipaddr,
            lease_time=int(lease_time),
            hostname="" if hostname is None else hostname,
            vendor_class="" if vendor_class is None else vendor_class,
            fingerprint="" if fingerprint is None else fingerprint,
        )


@dataclass(frozen=True)
class LeaseEvent:
    """Raw notification from the lease event source."""

    released: bool
    record: LeaseRecord


@dataclass(frozen=True)
class LeaseNotification:
    """A coalesced, per-device decision emitted by the reconciler."""

    kind: LeaseEventKind
    record: LeaseRecord


def parse_lease_event(payload: dict[str, Any]) -> LeaseEvent:
    """Build a ``LeaseEvent`` from its JSON form.

    Expected shape::

        {"released": false,
         "record": {"hardwareAddress": "00:11:22:33:44:55",
                    "ipAddress": "192.168.1.10",
                    "hostname": "laptop", "vendorClass": "MSFT 5.0",
                    "fingerprint": "1,3,6,15", "leaseDurationSeconds": 3600}}

    Raises ``InvalidLeaseEvent`` on missing or malformed fields.
    """
    if not isinstance(payload, dict):
        raise InvalidLeaseEvent(f"lease event must be an object, got {type(payload).__name__}")

    raw = payload.get("record")
    if not isinstance(raw, dict):
        raise InvalidLeaseEvent("lease event has no 'record' object")

    released = payload.get("released", False)
    if not isinstance(released, bool):
        raise InvalidLeaseEvent(f"'released' must be a boolean, got {released!r}")

    try:
        record = LeaseRecord.build(
            hwaddr=raw["hardwareAddress"],
            ipaddr=raw["ipAddress"],
            lease_time=raw.get("leaseDurationSeconds", 0),
            hostname=raw.get("hostname"),
            vendor_class=raw.get("vendorClass"),
            fingerprint=raw.get("fingerprint"),
        )
    except KeyError as exc:
        raise InvalidLeaseEvent(f"lease record missing field {exc.args[0]!r}") from exc
    except (TypeError, ValueError) as exc:
        raise InvalidLeaseEvent(f"invalid lease record: {exc}") from exc

    return LeaseEvent(released=released, record=record)
