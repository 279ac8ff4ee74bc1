"""Unit tests for the primary lease index."""

from __future__ import annotations

import logging

import pytest

from dhcp_lease_sync.leases.hwaddr import HardwareAddress
from dhcp_lease_sync.leases.index import PrimaryLeaseIndex


@pytest.fixture
def index() -> PrimaryLeaseIndex:
    return PrimaryLeaseIndex()


class TestUpsert:

    def test_insert_new_pair(self, index, make_record) -> None:
        rec = make_record()
        entry = index.upsert(rec)
        assert len(index) == 1
        assert entry.record == rec
        assert entry.pending_update is False
        assert entry.in_secondary_view is False
        assert rec.key in index

    def test_overwrite_marks_pending(self, index, make_record) -> None:
        first = index.upsert(make_record(hostname="old"))
        second = index.upsert(make_record(hostname="new", lease_time=10))
        assert second is first
        assert len(index) == 1
        assert first.record.hostname == "new"
        assert first.lease_time == 10
        assert first.pending_update is True

    def test_identical_renotification_still_marks_pending(self, index, make_record) -> None:
        entry = index.upsert(make_record())
        index.upsert(make_record())
        assert entry.pending_update is True

    def test_same_mac_different_ip_kept_separately(self, index, make_record) -> None:
        index.upsert(make_record(ip="192.168.1.10"))
        index.upsert(make_record(ip="192.168.1.11"))
        assert len(index) == 2


class TestRemove:

    def test_remove_existing(self, index, make_record) -> None:
        rec = make_record()
        index.upsert(rec)
        assert index.remove(rec.hwaddr, rec.ipaddr) is True
        assert len(index) == 0
        assert index.get(rec.hwaddr, rec.ipaddr) is None

    def test_remove_unknown_logs_error(self, index, make_record, caplog) -> None:
        index.upsert(make_record(mac="00:11:22:33:44:55"))
        unknown = make_record(mac="aa:bb:cc:dd:ee:ff", ip="10.0.0.5")
        with caplog.at_level(logging.ERROR, logger="dhcp_lease_sync.leases.index"):
            assert index.remove(unknown.hwaddr, unknown.ipaddr) is False
        assert "non-existent lease" in caplog.text
        assert "aa:bb:cc:dd:ee:ff" in caplog.text
        assert len(index) == 1

    def test_remove_clears_view_membership(self, index, make_record) -> None:
        rec = make_record()
        entry = index.upsert(rec)
        entry.in_secondary_view = True
        index.remove(rec.hwaddr, rec.ipaddr)
        assert entry.in_secondary_view is False


class TestTraversal:

    def test_ordered_by_hwaddr_then_ip(self, index, make_record) -> None:
        index.upsert(make_record(mac="00:00:00:00:00:02", ip="10.0.0.1"))
        index.upsert(make_record(mac="00:00:00:00:00:01", ip="10.0.0.10"))
        index.upsert(make_record(mac="00:00:00:00:00:01", ip="10.0.0.9"))
        index.upsert(make_record(mac="00:00:00:00:00:01", ip="fd00::1"))

        keys = [(str(e.hwaddr), str(e.ipaddr)) for e in index]
        assert keys == [
            ("00:00:00:00:00:01", "10.0.0.9"),
            ("00:00:00:00:00:01", "10.0.0.10"),
            ("00:00:00:00:00:01", "fd00::1"),
            ("00:00:00:00:00:02", "10.0.0.1"),
        ]

    def test_group_by_hwaddr(self, index, make_record) -> None:
        index.upsert(make_record(mac="00:00:00:00:00:02", ip="10.0.0.1"))
        index.upsert(make_record(mac="00:00:00:00:00:01", ip="10.0.0.2"))
        index.upsert(make_record(mac="00:00:00:00:00:01", ip="10.0.0.1"))

        groups = index.group_by_hwaddr()
        assert list(groups) == [
            HardwareAddress.parse("00:00:00:00:00:01"),
            HardwareAddress.parse("00:00:00:00:00:02"),
        ]
        first = groups[HardwareAddress.parse("00:00:00:00:00:01")]
        assert [str(e.ipaddr) for e in first] == ["10.0.0.1", "10.0.0.2"]

    def test_records(self, index, make_record) -> None:
        rec = make_record()
        index.upsert(rec)
        assert index.records() == [rec]
