"""Shared test fixtures for dhcp-lease-sync tests."""

import pathlib
from typing import Callable

import pytest

from dhcp_lease_sync.leases.record import LeaseRecord

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]


@pytest.fixture
def repo_root() -> pathlib.Path:
    return REPO_ROOT


@pytest.fixture
def make_record() -> Callable[..., LeaseRecord]:
    """Factory for lease records with sensible defaults."""

    def _make(
        mac: str = "00:11:22:33:44:55",
        ip: str = "192.168.1.10",
        lease_time: int = 3600,
        hostname: str = "laptop",
        vendor_class: str = "MSFT 5.0",
        fingerprint: str = "1,3,6,15",
    ) -> LeaseRecord:
        return LeaseRecord.build(
            hwaddr=mac,
            ipaddr=ip,
            lease_time=lease_time,
            hostname=hostname,
            vendor_class=vendor_class,
            fingerprint=fingerprint,
        )

    return _make
