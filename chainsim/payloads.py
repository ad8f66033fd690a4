"""Payloads carried by protocol packets, with their simulated wire sizes."""

from __future__ import annotations

import ipaddress
import struct
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any

from chainsim.heavy import HeavyObject
from chainsim.transactions import Transaction
from chainsim.units import compact_size, encode_compact_size

_UINT64_MAX = 0xFFFF_FFFF_FFFF_FFFF

# Protocol versions from which further fields of a version message are sent.
_VERSION_WITH_TRANS_ADDR = 106
_VERSION_WITH_START_HEIGHT = 209
_VERSION_WITH_RELAY = 70001

_VERSION_BASE_BYTES = 4 + 8 + 8 + 8 + 16 + 2
_VERSION_TRANS_BYTES = 8 + 16 + 2 + 8

IPv6Like = "ipaddress.IPv6Address | str | int"


class MessageKind(IntEnum):
    """Kind of a protocol message, which also names its command."""

    VERSION = 1
    VERACK = 2
    PING = 3
    PONG = 4
    BLOCK = 5


def _as_ipv6(value: Any) -> ipaddress.IPv6Address:
    return ipaddress.IPv6Address(value)


def _check_uint64(name: str, value: int) -> int:
    if value < 0 or value > _UINT64_MAX:
        raise ValueError(f"{name} out of range: {value}")
    return value


class Payload(HeavyObject, ABC):
    """The body of a protocol packet."""

    def __init__(self, name: str, kind: MessageKind, byte_length: int = 0) -> None:
        super().__init__()
        self.name = name
        self.kind = kind
        self.byte_length = byte_length

    @abstractmethod
    def raw_bytes(self) -> bytes | None:
        """The serialized payload, or None when it has no byte form."""

    def raw_hex(self) -> str:
        """Hex dump of the serialized payload; empty when there is none."""
        data = self.raw_bytes()
        if data is None:
            return ""
        return data[: self.byte_length].hex()

    def __str__(self) -> str:
        return ""


class _NoncePayload(Payload):
    def __init__(self, name: str, kind: MessageKind, nonce: int) -> None:
        super().__init__(name, kind, 8)
        self.nonce = nonce

    @property
    def nonce(self) -> int:
        return self._nonce

    @nonce.setter
    def nonce(self, value: int) -> None:
        self._nonce = _check_uint64("nonce", value)

    def raw_bytes(self) -> bytes:
        return self._nonce.to_bytes(8, "little")

    def __str__(self) -> str:
        return f"nonce={self._nonce}"


class PingPayload(_NoncePayload):
    """A ping carrying a nonce to be echoed back."""

    def __init__(self, nonce: int = 0) -> None:
        super().__init__("ping", MessageKind.PING, nonce)


class PongPayload(_NoncePayload):
    """The answer to a ping, echoing its nonce."""

    def __init__(self, nonce: int = 0) -> None:
        super().__init__("pong", MessageKind.PONG, nonce)


class VersionPayload(Payload):
    """The version handshake message; its size depends on the protocol version."""

    def __init__(
        self,
        *,
        version: int = 0,
        services: int = 0,
        timestamp: float = 0.0,
        addr_recv_services: int = 0,
        addr_recv_ip: Any = "::",
        addr_recv_port: int = 0,
        addr_trans_ip: Any = "::",
        addr_trans_port: int = 0,
        nonce: int = 0,
        user_agent: str = "",
        start_height: int = 0,
        relay: bool = False,
    ) -> None:
        self._version = version
        self._user_agent = user_agent
        super().__init__("version", MessageKind.VERSION)
        self.services = services
        self.timestamp = timestamp
        self.addr_recv_services = addr_recv_services
        self.addr_recv_ip = _as_ipv6(addr_recv_ip)
        self.addr_recv_port = addr_recv_port
        self.addr_trans_ip = _as_ipv6(addr_trans_ip)
        self.addr_trans_port = addr_trans_port
        self.nonce = nonce
        self.start_height = start_height
        self.relay = relay
        self._update_byte_length()

    @property
    def version(self) -> int:
        return self._version

    @version.setter
    def version(self, value: int) -> None:
        self._version = value
        self._update_byte_length()

    @property
    def user_agent(self) -> str:
        return self._user_agent

    @user_agent.setter
    def user_agent(self, value: str) -> None:
        self._user_agent = value
        self._update_byte_length()

    @property
    def user_agent_bytes(self) -> int:
        return len(self._user_agent.encode("utf-8"))

    @property
    def addr_trans_services(self) -> int:
        return self.services

    @addr_trans_services.setter
    def addr_trans_services(self, value: int) -> None:
        self.services = value

    def _update_byte_length(self) -> None:
        length = _VERSION_BASE_BYTES
        if self._version >= _VERSION_WITH_TRANS_ADDR:
            ua_bytes = self.user_agent_bytes
            length += _VERSION_TRANS_BYTES + compact_size(ua_bytes) + ua_bytes
            if self._version >= _VERSION_WITH_START_HEIGHT:
                length += 4
                if self._version >= _VERSION_WITH_RELAY:
                    length += 1
        self.byte_length = length

    def raw_bytes(self) -> bytes:
        parts = [
            struct.pack(
                "<iQqQ",
                self._version,
                self.services,
                int(self.timestamp),
                self.addr_recv_services,
            ),
            self.addr_recv_ip.packed,
            struct.pack(">H", self.addr_recv_port),
        ]
        if self._version >= _VERSION_WITH_TRANS_ADDR:
            agent = self._user_agent.encode("utf-8")
            parts += [
                struct.pack("<Q", self.services),
                self.addr_trans_ip.packed,
                struct.pack(">H", self.addr_trans_port),
                struct.pack("<Q", self.nonce),
                encode_compact_size(len(agent)),
                agent,
            ]
            if self._version >= _VERSION_WITH_START_HEIGHT:
                parts.append(struct.pack("<i", self.start_height))
                if self._version >= _VERSION_WITH_RELAY:
                    parts.append(b"\x01" if self.relay else b"\x00")
        return b"".join(parts)

    def __str__(self) -> str:
        text = (
            f"version={self._version}, services={self.services}, "
            f"timestamp={self.timestamp}, "
            f"addrRecvServices={self.addr_recv_services}, "
            f"addrRecvIp={self.addr_recv_ip}, addrRecvPort={self.addr_recv_port}, "
            f"addrTransIp={self.addr_trans_ip}, "
            f"addrTransPort={self.addr_trans_port}, nonce={self.nonce}, "
            f"userAgentBytes={self.user_agent_bytes}, userAgent={self._user_agent}"
        )
        if self._version >= _VERSION_WITH_START_HEIGHT:
            text += f", startHeight={self.start_height}"
        if self._version >= _VERSION_WITH_RELAY:
            text += f", relay={'True' if self.relay else 'False'}"
        return text


class VerackPayload(Payload):
    """Acknowledgement of a version message; it has no content."""

    def __init__(self) -> None:
        super().__init__("verack", MessageKind.VERACK)

    def raw_bytes(self) -> None:
        return None

    def __str__(self) -> str:
        return "<empty>"


class _OpaquePayload(Payload):
    """A payload whose size is simulated but that has no byte form."""

    def raw_bytes(self) -> None:
        return None


class BlockPayload(_OpaquePayload):
    """A payload carrying a whole block."""

    def __init__(self, block: Any = None) -> None:
        super().__init__("block", MessageKind.BLOCK)
        self.block = block


class InvPayload(_OpaquePayload):
    """An inventory announcement."""

    def __init__(self) -> None:
        super().__init__("inv", MessageKind.BLOCK)


class GetDataPayload(_OpaquePayload):
    """A request for the data of announced objects."""

    def __init__(self) -> None:
        super().__init__("getdata", MessageKind.BLOCK)


class GetBlocksPayload(_OpaquePayload):
    """A request for block inventories."""

    def __init__(self) -> None:
        super().__init__("getblocks", MessageKind.BLOCK)


class GetHeadersPayload(_OpaquePayload):
    """A request for block headers."""

    def __init__(self) -> None:
        super().__init__("getheaders", MessageKind.BLOCK)


class HeadersPayload(_OpaquePayload):
    """A reply carrying block headers."""

    def __init__(self) -> None:
        super().__init__("headers", MessageKind.BLOCK)


class TxPayload(_OpaquePayload):
    """A payload carrying a transaction; it takes the transaction's size."""

    def __init__(self, transaction: Transaction | None = None) -> None:
        super().__init__("tx", MessageKind.BLOCK)
        self._transaction: Transaction | None = None
        if transaction is not None:
            self.transaction = transaction

    @property
    def transaction(self) -> Transaction | None:
        return self._transaction

    @transaction.setter
    def transaction(self, tx: Transaction) -> None:
        self._transaction = tx
        self.byte_length = tx.byte_length