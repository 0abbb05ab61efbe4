from __future__ import annotations

import ipaddress

import pytest

from flowsniff.addresses import AddressMatcher, ConfigError, MacAddress, Protocol
from flowsniff.config import parse_address_list, parse_mac_list, parse_protocol
from flowsniff.utils import truncate_domain


def test_mac_parsing_and_display():
    mac = MacAddress.parse("00:1B:21:0a:3c:ff")
    assert mac.octets == b"\x00\x1b\x21\x0a\x3c\xff"
    assert str(mac) == "0:1b:21:a:3c:ff"
    assert MacAddress.parse(str(mac)) == mac


@pytest.mark.parametrize(
    "value",
    [
        "00:11:22:33:44",
        "00:11:22:33:44:55:66",
        "zz:11:22:33:44:55",
        "100:0:0:0:0:0",
        "0x1:2:3:4:5:6",
        "1_0:2:3:4:5:6",
        "+a:2:3:4:5:6",
        " a:2:3:4:5:6:",
        "a::3:4:5:6",
    ],
)
def test_invalid_mac_is_rejected(value):
    with pytest.raises(ConfigError):
        MacAddress.parse(value)


def test_mac_list_is_order_independent_set():
    first = parse_mac_list("aa:bb:cc:dd:ee:ff, 0:1:2:3:4:5")
    second = parse_mac_list("0:1:2:3:4:5,aa:bb:cc:dd:ee:ff,aa:bb:cc:dd:ee:ff")
    assert first == second
    assert len(first) == 2


def test_address_matcher_kinds():
    ipv4 = AddressMatcher.parse("192.0.2.1")
    ipv6 = AddressMatcher.parse("2001:0db8::0001")
    host = AddressMatcher.parse("example.com")

    assert ipv4.literal == ipaddress.ip_address("192.0.2.1")
    assert ipv6.text == "2001:db8::1"
    assert not host.is_literal
    # Matchers compare by displayed text only.
    assert AddressMatcher("2001:db8::1") == ipv6
    assert AddressMatcher("example.com") in parse_address_list("example.com,192.0.2.1")


@pytest.mark.parametrize("value", ["2001:db8::zz", "300.1.1.1", "10.0.0", ""])
def test_invalid_ip_literal_is_rejected(value):
    with pytest.raises(ConfigError):
        AddressMatcher.parse(value)


def test_protocol_mapping():
    assert Protocol.from_number(1) is Protocol.ICMP
    assert Protocol.from_number(6) is Protocol.TCP
    assert Protocol.from_number(17) is Protocol.UDP
    assert Protocol.from_number(47) is Protocol.UNKNOWN
    assert str(Protocol.UNKNOWN) == "???"

    assert parse_protocol("TCP") is Protocol.TCP
    assert parse_protocol("icmp") is Protocol.ICMP
    assert parse_protocol("http") is None
    assert parse_protocol(None) is None


def test_truncate_domain():
    assert truncate_domain("foo.bar.example.com", "10.0.0.1") == "example.com"
    assert truncate_domain("host", "10.0.0.1") == "host"
    assert truncate_domain("...", "10.0.0.1") == "10.0.0.1"
    assert truncate_domain("fe80::1", "fe80::1") == "fe80::1"
