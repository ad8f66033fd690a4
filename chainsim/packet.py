"""Protocol packets framing payloads, and direct block/transaction messages."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from chainsim.heavy import HeavyObject
from chainsim.payloads import MessageKind, Payload

HEADER_BYTES = 24
EMPTY_PAYLOAD_CHECKSUM = 0x5DF6E0E2
_UINT32_MASK = 0xFFFFFFFF


class Network(IntEnum):
    """Start string that opens every packet on a given network."""

    MAINNET = 0xD9B4BEF9
    TESTNET = 0x0709110B
    REGTEST = 0xDAB5BFFA
    SIGNET = 0x40CF030A


def _double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


class Packet(HeavyObject):
    """A protocol packet: a 24-byte header around an optional payload."""

    def __init__(
        self,
        payload: Payload | None = None,
        network: Network = Network.MAINNET,
        command_name: str | None = None,
    ) -> None:
        super().__init__(bit_length=HEADER_BYTES * 8)
        self.name = command_name
        self.kind = 0
        self.start_string = network
        self.checksum = 0
        self._computed_checksum = 0
        self._payload: Payload | None = None
        if payload is not None:
            self.encapsulate(payload)

    @property
    def network(self) -> Network:
        return self.start_string

    @network.setter
    def network(self, network: Network) -> None:
        self.start_string = network

    @property
    def command_name(self) -> str | None:
        return self.name

    @property
    def payload(self) -> Payload | None:
        return self._payload

    @property
    def payload_size(self) -> int:
        return self.byte_length - HEADER_BYTES

    @property
    def computed_checksum(self) -> int:
        """The last computed checksum, or zero if none was computed yet."""
        return self._computed_checksum

    def compute_checksum(self) -> int:
        """Compute (once) the checksum of the payload bytes."""
        if self._computed_checksum != 0:
            return self._computed_checksum
        size = self.payload_size
        if size == 0:
            self._computed_checksum = EMPTY_PAYLOAD_CHECKSUM
            return self._computed_checksum
        if self._payload is None:
            raise ValueError(
                "There is no payload but payloadSize is greater than zero"
            )
        raw = self._payload.raw_bytes()
        if raw is None:
            raise ValueError("Payload is empty but payloadSize is greater than zero")
        digest = _double_sha256(bytes(raw[:size]))
        self._computed_checksum = int.from_bytes(digest[:4], "big")
        return self._computed_checksum

    def is_checksum_valid(self) -> bool:
        return self.checksum == self.compute_checksum()

    def set_checksum_valid(self, valid: bool = True) -> None:
        """Store the correct checksum, or its bitwise complement when not valid."""
        self.checksum = self.compute_checksum()
        if not valid:
            self.checksum = ~self._computed_checksum & _UINT32_MASK

    def set_checksum_invalid(self) -> None:
        self.set_checksum_valid(False)

    def encapsulate(self, payload: Any) -> None:
        """Wrap ``payload``; the packet takes its command name and kind."""
        if not isinstance(payload, Payload):
            raise TypeError("Packet class can encapsulate only Payload packets")
        if self._payload is not None:
            raise ValueError("packet already encapsulates a payload")
        kind = MessageKind(payload.kind)
        self.name = kind.name.lower()
        self.kind = int(kind)
        self._payload = payload
        self.add_bits(payload.bit_length)

    def decapsulate(self) -> Payload | None:
        """Remove and return the payload, or None when there is none."""
        self.name = "<empty-Packet>"
        self.kind = 0
        payload = self._payload
        if payload is not None:
            self.subtract_bits(payload.bit_length)
            self._payload = None
        return payload

    def __str__(self) -> str:
        text = (
            f"start_string=0x{int(self.start_string):08x}, "
            f"command_name={self.name}, "
            f"payload_size={self.payload_size:x}, "
            f"checksum={self.checksum:x}"
        )
        computed = self._computed_checksum
        if computed == self.checksum:
            text += " (valid)"
        else:
            text += f" (invalid: should be {computed:x})"
        return text


@dataclass
class DirectBlockMsg:
    """A message handing a block straight to another node."""

    block: Any = None
    name: str = "block"


@dataclass
class DirectTxMsg:
    """A message handing a transaction straight to another node."""

    tx: Any = None
    name: str = "tx"