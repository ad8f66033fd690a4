import copy

import pytest

from chainsim.packet import DirectBlockMsg, DirectTxMsg, Network, Packet
from chainsim.payloads import PingPayload, TxPayload, VerackPayload
from chainsim.transactions import Transaction


def test_empty_packet_has_fixed_checksum():
    packet = Packet()
    assert packet.payload_size == 0
    assert packet.compute_checksum() == 0x5DF6E0E2


def test_header_only_size():
    assert Packet().byte_length == 24


def test_encapsulate_sets_name_kind_and_size():
    ping = PingPayload(42)
    packet = Packet(ping)
    assert packet.command_name == "ping"
    assert packet.kind == int(ping.kind)
    assert packet.payload is ping
    assert packet.payload_size == ping.byte_length


def test_encapsulate_rejects_non_payload():
    with pytest.raises(TypeError):
        Packet().encapsulate(object())


def test_double_encapsulate_rejected():
    packet = Packet(PingPayload(1))
    with pytest.raises(ValueError):
        packet.encapsulate(PingPayload(2))


def test_decapsulate_restores_empty_packet():
    ping = PingPayload(7)
    packet = Packet(ping)
    assert packet.decapsulate() is ping
    assert packet.name == "<empty-Packet>"
    assert packet.kind == 0
    assert packet.payload_size == 0
    assert packet.decapsulate() is None


def test_checksum_valid_and_invalid():
    packet = Packet(PingPayload(99))
    packet.set_checksum_valid()
    assert packet.is_checksum_valid()
    assert packet.checksum == packet.computed_checksum
    packet.set_checksum_invalid()
    assert not packet.is_checksum_valid()
    assert packet.checksum == (~packet.computed_checksum) & 0xFFFFFFFF


def test_checksum_depends_only_on_payload_bytes():
    a = Packet(PingPayload(5)).compute_checksum()
    b = Packet(PingPayload(5)).compute_checksum()
    c = Packet(PingPayload(6)).compute_checksum()
    assert a == b
    assert 0 <= c <= 0xFFFFFFFF and c != a


def test_checksum_is_cached():
    packet = Packet(PingPayload(3))
    first = packet.compute_checksum()
    packet.payload.nonce = 4
    assert packet.compute_checksum() == first


def test_opaque_payload_with_size_cannot_be_checksummed():
    packet = Packet(TxPayload(Transaction()))
    assert packet.payload_size > 0
    with pytest.raises(ValueError):
        packet.compute_checksum()


def test_missing_payload_with_size_raises():
    packet = Packet()
    packet.byte_length = 30
    with pytest.raises(ValueError):
        packet.compute_checksum()


def test_verack_has_empty_checksum():
    packet = Packet(VerackPayload())
    assert packet.command_name == "verack"
    assert packet.compute_checksum() == 0x5DF6E0E2


def test_network_roundtrip_and_str():
    packet = Packet(network=Network.TESTNET)
    assert packet.network is Network.TESTNET
    packet.network = Network.MAINNET
    assert packet.start_string is Network.MAINNET
    packet.set_checksum_valid()
    text = str(packet)
    assert text.startswith(f"start_string=0x{int(Network.MAINNET):08x}")
    assert text.endswith("(valid)")


def test_str_reports_invalid_checksum():
    packet = Packet(PingPayload(1))
    packet.set_checksum_invalid()
    assert "(invalid: should be" in str(packet)


def test_direct_messages_share_contents():
    tx = Transaction()
    msg = DirectTxMsg(tx)
    dup = copy.copy(msg)
    assert dup.tx is tx
    assert msg.name == "tx"
    block_msg = DirectBlockMsg("blk")
    assert block_msg.name == "block"
    assert copy.copy(block_msg).block == "blk"