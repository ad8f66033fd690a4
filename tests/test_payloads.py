import ipaddress
import struct

import pytest

from chainsim.payloads import (
    BlockPayload,
    GetBlocksPayload,
    GetDataPayload,
    GetHeadersPayload,
    HeadersPayload,
    InvPayload,
    MessageKind,
    Payload,
    PingPayload,
    PongPayload,
    TxPayload,
    VerackPayload,
    VersionPayload,
)
from chainsim.transactions import Transaction, TransactionOutput
from chainsim.units import decode_compact_size


def test_payload_is_abstract():
    with pytest.raises(TypeError):
        Payload("x", MessageKind.PING)


@pytest.mark.parametrize(
    "cls, name, kind",
    [
        (PingPayload, "ping", MessageKind.PING),
        (PongPayload, "pong", MessageKind.PONG),
        (VersionPayload, "version", MessageKind.VERSION),
        (VerackPayload, "verack", MessageKind.VERACK),
        (BlockPayload, "block", MessageKind.BLOCK),
        (InvPayload, "inv", MessageKind.BLOCK),
        (GetDataPayload, "getdata", MessageKind.BLOCK),
        (GetBlocksPayload, "getblocks", MessageKind.BLOCK),
        (GetHeadersPayload, "getheaders", MessageKind.BLOCK),
        (HeadersPayload, "headers", MessageKind.BLOCK),
        (TxPayload, "tx", MessageKind.BLOCK),
    ],
)
def test_names_and_kinds(cls, name, kind):
    payload = cls()
    assert payload.name == name
    assert payload.kind is kind


@pytest.mark.parametrize("cls", [PingPayload, PongPayload])
def test_nonce_payload_bytes_round_trip(cls):
    nonce = 0x0102030405060708
    payload = cls(nonce)
    assert payload.byte_length == 8
    data = payload.raw_bytes()
    assert len(data) == payload.byte_length
    assert int.from_bytes(data, "little") == nonce
    assert int.from_bytes(bytes.fromhex(payload.raw_hex()), "little") == nonce
    assert str(payload) == f"nonce={nonce}"


def test_nonce_out_of_range():
    with pytest.raises(ValueError):
        PingPayload(-1)
    with pytest.raises(ValueError):
        PongPayload(1 << 64)


@pytest.mark.parametrize(
    "cls",
    [
        VerackPayload,
        BlockPayload,
        InvPayload,
        GetDataPayload,
        GetBlocksPayload,
        GetHeadersPayload,
        HeadersPayload,
        TxPayload,
    ],
)
def test_opaque_payloads_have_no_bytes(cls):
    payload = cls()
    assert payload.raw_bytes() is None
    assert payload.raw_hex() == ""
    assert payload.byte_length == 0


def test_verack_str():
    assert str(VerackPayload()) == "<empty>"


def test_block_payload_keeps_block():
    marker = object()
    assert BlockPayload(marker).block is marker


def test_tx_payload_takes_transaction_size():
    tx = Transaction()
    tx.append_output(TransactionOutput(None, 50))
    payload = TxPayload(tx)
    assert payload.transaction is tx
    assert payload.byte_length == tx.byte_length


def test_version_old_protocol_has_base_fields_only():
    payload = VersionPayload(version=100, user_agent="/agent/")
    assert payload.byte_length == 46
    assert len(payload.raw_bytes()) == payload.byte_length


@pytest.mark.parametrize("version", [0, 105, 106, 208, 209, 70000, 70001, 70015])
@pytest.mark.parametrize("agent", ["", "/x/", "/" + "a" * 300 + "/"])
def test_version_raw_length_matches_byte_length(version, agent):
    payload = VersionPayload(version=version, user_agent=agent, relay=True)
    assert len(payload.raw_bytes()) == payload.byte_length


def test_version_byte_length_follows_setters():
    payload = VersionPayload(version=70001, user_agent="/x/")
    assert payload.byte_length == 89
    before = payload.byte_length
    payload.user_agent = "/xy/"
    assert payload.byte_length == before + 1
    payload.version = 100
    assert payload.byte_length == 46


def test_version_wire_layout():
    recv_ip = ipaddress.IPv6Address("::ffff:10.0.0.1")
    trans_ip = ipaddress.IPv6Address("::ffff:10.0.0.2")
    payload = VersionPayload(
        version=70001,
        services=1,
        timestamp=1234.9,
        addr_recv_services=3,
        addr_recv_ip=recv_ip,
        addr_recv_port=8333,
        addr_trans_ip=str(trans_ip),
        addr_trans_port=18333,
        nonce=77,
        user_agent="/sim/",
        start_height=42,
        relay=True,
    )
    data = payload.raw_bytes()
    version, services, timestamp, recv_services = struct.unpack_from("<iQqQ", data, 0)
    assert (version, services, timestamp, recv_services) == (70001, 1, 1234, 3)
    assert data[28:44] == recv_ip.packed
    assert struct.unpack_from(">H", data, 44)[0] == 8333
    assert struct.unpack_from("<Q", data, 46)[0] == payload.addr_trans_services
    assert data[54:70] == trans_ip.packed
    assert struct.unpack_from(">H", data, 70)[0] == 18333
    assert struct.unpack_from("<Q", data, 72)[0] == 77
    assert decode_compact_size(data[80:]) == 5
    assert data[81:86] == b"/sim/"
    assert struct.unpack_from("<i", data, 86)[0] == 42
    assert data[-1:] == b"\x01"


def test_version_relay_false_byte():
    payload = VersionPayload(version=70001, relay=False)
    assert payload.raw_bytes()[-1:] == b"\x00"


def test_version_hex_matches_bytes():
    payload = VersionPayload(version=209, user_agent="/x/")
    assert bytes.fromhex(payload.raw_hex()) == payload.raw_bytes()


def test_trans_services_alias():
    payload = VersionPayload()
    payload.addr_trans_services = 9
    assert payload.services == 9


def test_version_str_optional_fields():
    recent = str(VersionPayload(version=70001, start_height=7, relay=True))
    assert "startHeight=7" in recent
    assert recent.endswith("relay=True")
    middle = str(VersionPayload(version=209, start_height=7))
    assert "startHeight=7" in middle
    assert "relay=" not in middle
    old = str(VersionPayload(version=100, user_agent="/u/"))
    assert "startHeight" not in old
    assert old.endswith("userAgent=/u/")
    assert "userAgentBytes=3" in old