"""Objects that carry a simulated wire size, and chain objects built on them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum


class ObjectType(IntEnum):
    """Inventory type of an object stored on the chain."""

    ERROR = 0
    MSG_TX = 1
    MSG_BLOCK = 2


class HeavyObject:
    """An object whose simulated size is tracked in bits."""

    def __init__(self, *, bit_length: int = 0) -> None:
        self._bit_length = 0
        self.bit_length = bit_length

    @property
    def bit_length(self) -> int:
        return self._bit_length

    @bit_length.setter
    def bit_length(self, bits: int) -> None:
        if bits < 0:
            raise ValueError(f"Negative length {bits}")
        self._bit_length = bits

    @property
    def byte_length(self) -> int:
        """Size in whole bytes, rounded up."""
        return (self._bit_length + 7) >> 3

    @byte_length.setter
    def byte_length(self, count: int) -> None:
        self.bit_length = count << 3 if count >= 0 else count * 8

    def add_bits(self, bits: int) -> None:
        """Grow (or, with a negative count, shrink) the size by ``bits``."""
        new_length = self._bit_length + bits
        if new_length < 0:
            raise ValueError(
                f"Length would become negative ({new_length}) after adding {bits}"
            )
        self._bit_length = new_length

    def add_bytes(self, count: int) -> None:
        self.add_bits(count * 8)

    def subtract_bits(self, bits: int) -> None:
        self.add_bits(-bits)

    def subtract_bytes(self, count: int) -> None:
        self.subtract_bits(count * 8)

    def __str__(self) -> str:
        return f"bitLength={self._bit_length}"


class ChainObject(HeavyObject, ABC):
    """A sized object that belongs to the chain and has an inventory type."""

    @property
    @abstractmethod
    def object_type(self) -> ObjectType:
        """The inventory type of this object."""

    def __str__(self) -> str:
        return f"type={self.object_type.name}; {super().__str__()}"