"""Tests for shareable address selection."""

import pytest

from umbra_client.core.errors import NoAddressError
from umbra_client.network.address import choose, ipv4_host, is_shareable


def test_prefers_non_loopback_ipv4():
    addresses = ["/ip4/127.0.0.1/tcp/4001", "/ip4/10.0.0.5/tcp/4001"]

    assert choose(addresses, "PEER") == "/ip4/10.0.0.5/tcp/4001/p2p/PEER"


def test_falls_back_to_first_address():
    addresses = ["/ip6/::1/udp/4001/quic-v1", "/ip4/127.0.0.1/udp/4001/quic-v1"]

    assert choose(addresses, "PEER") == "/ip6/::1/udp/4001/quic-v1/p2p/PEER"


def test_whole_loopback_range_is_skipped():
    addresses = ["/ip4/127.0.1.1/tcp/1", "/ip4/192.168.1.20/tcp/1"]

    assert choose(addresses, "PEER").startswith("/ip4/192.168.1.20/")


def test_keeps_existing_peer_id():
    addresses = ["/ip4/10.0.0.5/udp/4001/quic-v1/p2p/PEER"]

    assert choose(addresses, "PEER") == addresses[0]


def test_empty_addresses_raise():
    with pytest.raises(NoAddressError):
        choose([], "PEER")


def test_ipv4_host_parsing():
    assert ipv4_host("/ip4/10.0.0.5/tcp/1") == "10.0.0.5"
    assert ipv4_host("/ip6/::1/tcp/1") is None
    assert ipv4_host("ip4/10.0.0.5") is None
    assert not is_shareable("/ip4/not-an-ip/tcp/1")
    assert not is_shareable("/ip4/0.0.0.0/udp/4001/quic-v1")
    assert is_shareable("/ip4/192.168.1.20/udp/4001/quic-v1")


def test_unspecified_address_is_skipped():
    addresses = ["/ip4/0.0.0.0/udp/4001/quic-v1", "/ip4/10.0.0.5/udp/4001/quic-v1"]

    assert choose(addresses, "PEER") == "/ip4/10.0.0.5/udp/4001/quic-v1/p2p/PEER"
