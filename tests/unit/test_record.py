"""Unit tests for lease records and lease event parsing."""

from __future__ import annotations

import dataclasses
import ipaddress

import pytest

from dhcp_lease_sync.leases.hwaddr import HardwareAddress
from dhcp_lease_sync.leases.record import (
    InvalidLeaseEvent,
    LeaseRecord,
    ip_sort_key,
    parse_lease_event,
)


def _payload(**record_overrides) -> dict:
    record = {
        "hardwareAddress": "00:11:22:33:44:55",
        "ipAddress": "192.168.1.10",
        "hostname": "laptop",
        "vendorClass": "MSFT 5.0",
        "fingerprint": "1,3,6,15",
        "leaseDurationSeconds": 3600,
    }
    record.update(record_overrides)
    return {"released": False, "record": record}


class TestLeaseRecord:

    def test_build_parses_addresses(self) -> None:
        rec = LeaseRecord.build("00-11-22-33-44-55", "10.0.0.5", 60)
        assert rec.hwaddr == HardwareAddress.parse("00:11:22:33:44:55")
        assert rec.ipaddr == ipaddress.IPv4Address("10.0.0.5")
        assert rec.hostname == ""
        assert rec.key == (rec.hwaddr, rec.ipaddr)

    def test_build_accepts_ipv6(self) -> None:
        rec = LeaseRecord.build("00:11:22:33:44:55", "fd00::10", 60)
        assert rec.ipaddr.version == 6

    def test_frozen(self) -> None:
        rec = LeaseRecord.build("00:11:22:33:44:55", "10.0.0.5", 60)
        with pytest.raises(dataclasses.FrozenInstanceError):
            rec.lease_time = 0

    def test_with_lease_time(self) -> None:
        rec = LeaseRecord.build("00:11:22:33:44:55", "10.0.0.5", 60, hostname="h")
        other = rec.with_lease_time(120)
        assert other.lease_time == 120
        assert other.hostname == "h"
        assert rec.lease_time == 60

    def test_ip_sort_key_orders_v4_before_v6(self) -> None:
        v4 = ipaddress.ip_address("255.255.255.255")
        v6 = ipaddress.ip_address("::1")
        low = ipaddress.ip_address("10.0.0.2")
        high = ipaddress.ip_address("10.0.0.10")
        assert sorted([v6, high, v4, low], key=ip_sort_key) == [low, high, v4, v6]


class TestParseLeaseEvent:

    def test_acquired(self) -> None:
        event = parse_lease_event(_payload())
        assert event.released is False
        assert str(event.record.hwaddr) == "00:11:22:33:44:55"
        assert str(event.record.ipaddr) == "192.168.1.10"
        assert event.record.lease_time == 3600
        assert event.record.vendor_class == "MSFT 5.0"
        assert event.record.fingerprint == "1,3,6,15"

    def test_released(self) -> None:
        payload = _payload()
        payload["released"] = True
        assert parse_lease_event(payload).released is True

    def test_optional_strings_may_be_null(self) -> None:
        event = parse_lease_event(_payload(hostname=None, vendorClass=None, fingerprint=None))
        assert event.record.hostname == ""
        assert event.record.vendor_class == ""
        assert event.record.fingerprint == ""

    def test_missing_duration_defaults_to_zero(self) -> None:
        payload = _payload()
        del payload["record"]["leaseDurationSeconds"]
        assert parse_lease_event(payload).record.lease_time == 0

    def test_missing_hwaddr(self) -> None:
        payload = _payload()
        del payload["record"]["hardwareAddress"]
        with pytest.raises(InvalidLeaseEvent, match="hardwareAddress"):
            parse_lease_event(payload)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"hardwareAddress": "zz:11:22:33:44:55"},
            {"ipAddress": "192.168.1.300"},
            {"leaseDurationSeconds": "forever"},
            {"leaseDurationSeconds": None},
        ],
    )
    def test_malformed_fields(self, overrides: dict) -> None:
        with pytest.raises(InvalidLeaseEvent):
            parse_lease_event(_payload(**overrides))

    def test_no_record(self) -> None:
        with pytest.raises(InvalidLeaseEvent):
            parse_lease_event({"released": False})

    def test_released_must_be_bool(self) -> None:
        payload = _payload()
        payload["released"] = "yes"
        with pytest.raises(InvalidLeaseEvent):
            parse_lease_event(payload)

    def test_not_an_object(self) -> None:
        with pytest.raises(InvalidLeaseEvent):
            parse_lease_event(["released", False])

    def test_invalid_event_is_value_error(self) -> None:
        assert issubclass(InvalidLeaseEvent, ValueError)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"hardwareAddress": 123},
            {"hardwareAddress": ["00", "11", "22", "33", "44", "55"]},
            {"ipAddress": 167772161},
            {"ipAddress": {"v4": "10.0.0.1"}},
            {"hostname": 42},
            {"vendorClass": ["MSFT"]},
            {"fingerprint": {"opts": [1, 3]}},
            {"leaseDurationSeconds": True},
        ],
    )
    def test_wrongly_typed_fields(self, overrides: dict) -> None:
        with pytest.raises(InvalidLeaseEvent):
            parse_lease_event(_payload(**overrides))


class TestRecordValidation:

    def test_rejects_integer_ip(self) -> None:
        with pytest.raises(ValueError, match="ipaddr"):
            LeaseRecord.build("00:11:22:33:44:55", 167772161, 60)

    def test_rejects_non_text_hwaddr(self) -> None:
        with pytest.raises(ValueError, match="hardware address"):
            LeaseRecord.build(0x001122334455, "10.0.0.1", 60)

    def test_direct_construction_is_checked(self) -> None:
        hw = HardwareAddress.parse("00:11:22:33:44:55")
        with pytest.raises(ValueError, match="ipaddr"):
            LeaseRecord(hwaddr=hw, ipaddr="10.0.0.1", lease_time=60)
        with pytest.raises(ValueError, match="hwaddr"):
            LeaseRecord(hwaddr="00:11:22:33:44:55", ipaddr=ipaddress.ip_address("10.0.0.1"), lease_time=60)
        with pytest.raises(ValueError, match="hostname"):
            LeaseRecord(hwaddr=hw, ipaddr=ipaddress.ip_address("10.0.0.1"), lease_time=60, hostname=None)

    def test_accepts_address_objects(self) -> None:
        hw = HardwareAddress.parse("00:11:22:33:44:55")
        ip = ipaddress.ip_address("10.0.0.1")
        assert LeaseRecord.build(hw, ip, 60).key == (hw, ip)
