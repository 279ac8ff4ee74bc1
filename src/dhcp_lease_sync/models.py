"""Pydantic models for rows of the leased-IP table."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from dhcp_lease_sync.leases.hwaddr import normalize_hwaddr
from dhcp_lease_sync.leases.record import LeaseRecord

# lease_time value the store reads as "delete this row"
LEASE_TIME_DELETE = 0
# lease_time written for a live lease whose remaining time is zero
LEASE_TIME_FRESH = -1


class DHCPLeasedIP(BaseModel):
    """One row of ``dhcp_leased_ip``."""

    model_config = ConfigDict(from_attributes=True)

    hwaddr: str
    inet_addr: str
    hostname: str = ""
    fingerprint: str = ""
    vendor_class: str = ""
    lease_time: int

    @classmethod
    def from_record(cls, record: LeaseRecord, *, released: bool = False) -> DHCPLeasedIP:
        """Build the row for *record*.

        A released lease gets ``lease_time = 0``. A live lease never does:
        zero is replaced with the ``-1`` sentinel so a first insert is not
        read back as a deletion.
        """
        if released:
            lease_time = LEASE_TIME_DELETE
        else:
            lease_time = record.lease_time
            if lease_time == LEASE_TIME_DELETE:
                lease_time = LEASE_TIME_FRESH

        return cls(
            hwaddr=normalize_hwaddr(record.hwaddr),
            inet_addr=str(record.ipaddr),
            hostname=record.hostname,
            fingerprint=record.fingerprint,
            vendor_class=record.vendor_class,
            lease_time=lease_time,
        )

    @property
    def is_delete(self) -> bool:
        return self.lease_time == LEASE_TIME_DELETE

    def as_row(self) -> dict[str, Any]:
        return self.model_dump()
