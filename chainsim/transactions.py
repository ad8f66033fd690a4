"""Transactions, their inputs and outputs, and coinbase transactions."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any

from chainsim.heavy import ChainObject, HeavyObject, ObjectType
from chainsim.units import compact_size

NULL_INDEX = 0xFFFFFFFF

_OUTPUT_IDS = itertools.count()
_TRANSACTION_IDS = itertools.count()

_TX_BASE_BYTES = 4 + 1 + 0 + 1 + 0 + 4
_INPUT_BYTES = 36 + 1 + 108 + 4
_COINBASE_INPUT_BYTES = 36 + 1 + 4 + 0 + 4


def _check_index(index: int, size: int, *, allow_end: bool = False) -> None:
    limit = size + 1 if allow_end else size
    if index < 0 or index >= limit:
        raise IndexError(f"Array of size {size} indexed by {index}")


@dataclass(frozen=True)
class Outpoint:
    """Reference to an output: the id of its transaction and its index there."""

    tx_id: int | None
    index: int

    @classmethod
    def null(cls) -> Outpoint:
        """The outpoint that coinbase inputs point to."""
        return cls(None, NULL_INDEX)

    @property
    def is_null(self) -> bool:
        return self.tx_id is None and self.index == NULL_INDEX


class TransactionOutput(HeavyObject):
    """An amount of satoshis paid to an address."""

    PK_SCRIPT = "abcdefghijklmnopqrstuvwxy"

    def __init__(self, address: Any = None, value: int = 0) -> None:
        super().__init__()
        self.address = address
        self.value = value
        self.coinbase = False
        self._id = next(_OUTPUT_IDS)
        script_bytes = self.pk_script_bytes
        self.byte_length = 8 + compact_size(script_bytes) + script_bytes

    @property
    def id(self) -> int:
        return self._id

    @property
    def is_coinbase(self) -> bool:
        return self.coinbase

    @property
    def pk_script(self) -> str:
        return self.PK_SCRIPT

    @property
    def pk_script_bytes(self) -> int:
        return len(self.pk_script)

    def __copy__(self) -> TransactionOutput:
        clone = TransactionOutput(self.address, self.value)
        clone.bit_length = self.bit_length
        return clone

    def __str__(self) -> str:
        return f"id={self._id}, value={self.value}; {super().__str__()}"


class TransactionInput(HeavyObject):
    """An input spending a previous output."""

    def __init__(self, prev_output: TransactionOutput | None = None) -> None:
        super().__init__()
        self.prev_output = prev_output
        self._transaction: Transaction | None = None
        self.byte_length = _INPUT_BYTES

    @property
    def transaction(self) -> Transaction | None:
        """The transaction that holds this input, if any."""
        return self._transaction

    @property
    def is_coinbase(self) -> bool:
        return False

    @property
    def signature_script(self) -> str:
        return ""

    @property
    def script_bytes(self) -> int:
        return len(self.signature_script)

    @property
    def value(self) -> int:
        if self.prev_output is not None:
            return self.prev_output.value
        return 0

    @property
    def prev_outpoint(self) -> Outpoint:
        """Locate the previous output among the outputs of the owning transaction."""
        tx = self._transaction
        if tx is None:
            raise ValueError("input does not belong to a transaction")
        for index, txout in enumerate(tx.outputs):
            if txout is not None and txout is self.prev_output:
                return Outpoint(tx.id, index)
        return Outpoint(tx.id, NULL_INDEX)

    def __str__(self) -> str:
        return f"value={self.value}; {super().__str__()}"


class CoinbaseInput(TransactionInput):
    """The single input of a coinbase transaction, carrying the block height."""

    def __init__(self, height: int = 0) -> None:
        super().__init__()
        self.height = height
        self.byte_length = _COINBASE_INPUT_BYTES

    @property
    def is_coinbase(self) -> bool:
        return True

    @property
    def coinbase_script(self) -> str:
        return self.signature_script

    @property
    def value(self) -> int:
        tx = self._transaction
        if isinstance(tx, Coinbase):
            return tx.reward
        return 0

    @property
    def prev_outpoint(self) -> Outpoint:
        return Outpoint.null()


class Transaction(ChainObject):
    """A transaction whose simulated size follows its inputs and outputs."""

    def __init__(self) -> None:
        super().__init__(bit_length=_TX_BASE_BYTES * 8)
        self._id = next(_TRANSACTION_IDS)
        self._inputs: list[TransactionInput | None] = []
        self._outputs: list[TransactionOutput | None] = []
        self.invalidate_cache()

    @property
    def id(self) -> int:
        return self._id

    @property
    def object_type(self) -> ObjectType:
        return ObjectType.MSG_TX

    @property
    def is_coinbase(self) -> bool:
        return (
            len(self._inputs) == 1
            and self._inputs[0] is not None
            and self._inputs[0].is_coinbase
        )

    @property
    def inputs(self) -> tuple[TransactionInput | None, ...]:
        return tuple(self._inputs)

    @property
    def outputs(self) -> tuple[TransactionOutput | None, ...]:
        return tuple(self._outputs)

    @property
    def input_count(self) -> int:
        return len(self._inputs)

    @property
    def output_count(self) -> int:
        return len(self._outputs)

    # Inputs are owned by the transaction.

    def _adopt(self, txin: TransactionInput) -> None:
        owner = txin._transaction
        if owner is not None and owner is not self:
            raise ValueError("input already belongs to another transaction")
        txin._transaction = self
        self.add_bits(txin.bit_length)

    def _release(self, txin: TransactionInput) -> None:
        self.subtract_bits(txin.bit_length)
        txin._transaction = None

    def resize_inputs(self, size: int) -> None:
        if size < 0:
            raise ValueError(f"Negative array size {size}")
        old = len(self._inputs)
        if size > old:
            self.add_bytes(compact_size(size) - compact_size(old))
            self._inputs.extend([None] * (size - old))
        elif size < old:
            self.subtract_bytes(compact_size(old) - compact_size(size))
            for txin in self._inputs[size:]:
                if txin is not None:
                    self._release(txin)
            del self._inputs[size:]
        self.invalidate_cache()

    def set_input(self, index: int, txin: TransactionInput | None) -> None:
        _check_index(index, len(self._inputs))
        if self._inputs[index] is not None:
            raise ValueError(
                "a value is already set, remove it first with remove_input()"
            )
        if txin is not None:
            self._adopt(txin)
        self._inputs[index] = txin
        if txin is not None:
            self.invalidate_cache()

    def remove_input(self, index: int) -> TransactionInput | None:
        """Take the input out of its slot, leaving the slot empty."""
        _check_index(index, len(self._inputs))
        txin = self._inputs[index]
        self._inputs[index] = None
        if txin is not None:
            self._release(txin)
            self.invalidate_cache()
        return txin

    def insert_input(self, index: int, txin: TransactionInput | None) -> None:
        old = len(self._inputs)
        _check_index(index, old, allow_end=True)
        if txin is not None:
            self._adopt(txin)
        self.add_bytes(compact_size(old + 1) - compact_size(old))
        self._inputs.insert(index, txin)
        self.invalidate_cache()

    def append_input(self, txin: TransactionInput | None) -> None:
        self.insert_input(len(self._inputs), txin)

    def erase_input(self, index: int) -> None:
        _check_index(index, len(self._inputs))
        txin = self._inputs.pop(index)
        if txin is not None:
            self._release(txin)
        size = len(self._inputs)
        self.subtract_bytes(compact_size(size + 1) - compact_size(size))
        self.invalidate_cache()

    # Outputs are shared, so they can be replaced freely.

    def resize_outputs(self, size: int) -> None:
        if size < 0:
            raise ValueError(f"Negative array size {size}")
        old = len(self._outputs)
        if size > old:
            self.add_bytes(compact_size(size) - compact_size(old))
            self._outputs.extend([None] * (size - old))
        elif size < old:
            self.subtract_bytes(compact_size(old) - compact_size(size))
            for txout in self._outputs[size:]:
                if txout is not None:
                    self.subtract_bits(txout.bit_length)
            del self._outputs[size:]
        self.invalidate_cache()

    def set_output(self, index: int, txout: TransactionOutput | None) -> None:
        _check_index(index, len(self._outputs))
        old = self._outputs[index]
        if old is not None:
            self.subtract_bits(old.bit_length)
            self.invalidate_cache()
        self._outputs[index] = txout
        if txout is not None:
            txout.coinbase = self.is_coinbase
            self.add_bits(txout.bit_length)
            self.invalidate_cache()

    def insert_output(self, index: int, txout: TransactionOutput | None) -> None:
        old = len(self._outputs)
        _check_index(index, old, allow_end=True)
        self.add_bytes(compact_size(old + 1) - compact_size(old))
        self._outputs.insert(index, txout)
        if txout is not None:
            txout.coinbase = self.is_coinbase
            self.add_bits(txout.bit_length)
        self.invalidate_cache()

    def append_output(self, txout: TransactionOutput | None) -> None:
        self.insert_output(len(self._outputs), txout)

    def erase_output(self, index: int) -> None:
        _check_index(index, len(self._outputs))
        txout = self._outputs.pop(index)
        if txout is not None:
            self.subtract_bits(txout.bit_length)
        size = len(self._outputs)
        self.subtract_bytes(compact_size(size + 1) - compact_size(size))
        self.invalidate_cache()

    # Values, with a cache that survives until the transaction changes.

    @property
    def output_value(self) -> int:
        if self._output_value_cache > 0:
            return self._output_value_cache
        return sum(txout.value for txout in self._outputs if txout is not None)

    @property
    def input_value(self) -> int:
        if self._input_value_cache > 0:
            return self._input_value_cache
        return sum(txin.value for txin in self._inputs if txin is not None)

    @property
    def fee(self) -> int:
        if self._fee_cache > 0:
            return self._fee_cache
        return self.input_value - self.output_value

    @property
    def weight(self) -> int:
        return self.byte_length

    @property
    def fee_rate(self) -> float:
        if self._fee_rate_cache >= 0:
            return self._fee_rate_cache
        return self.fee / float(self.weight)

    def invalidate_cache(self) -> None:
        self._input_value_cache = 0
        self._output_value_cache = 0
        self._fee_cache = 0
        self._fee_rate_cache = -1.0

    def update_cache(self) -> None:
        self.invalidate_cache()
        input_value = self.input_value
        output_value = self.output_value
        fee = self.fee
        fee_rate = self.fee_rate
        self._input_value_cache = input_value
        self._output_value_cache = output_value
        self._fee_cache = fee
        self._fee_rate_cache = fee_rate

    def build_cache(self) -> None:
        """Fill the cache unless it is already filled."""
        if self._fee_rate_cache < 0:
            self.update_cache()

    def __str__(self) -> str:
        return (
            f"id={self._id}, inputs={self.input_count}, "
            f"outputs={self.output_count}, fee={self.fee}; {super().__str__()}"
        )


class Coinbase(Transaction):
    """The transaction that pays a block's reward."""

    def __init__(
        self,
        txin: CoinbaseInput | None = None,
        txout: TransactionOutput | None = None,
    ) -> None:
        super().__init__()
        if txin is not None:
            self.append_input(txin)
        if txout is not None:
            self.append_output(txout)

    @classmethod
    def paying(cls, address: Any, reward: int, height: int) -> Coinbase:
        """Build a coinbase paying ``reward`` to ``address`` at ``height``."""
        return cls(CoinbaseInput(height), TransactionOutput(address, reward))

    @property
    def is_coinbase(self) -> bool:
        return True

    @property
    def height(self) -> int:
        if not self._inputs:
            raise IndexError("coinbase has no input")
        txin = self._inputs[0]
        if not isinstance(txin, CoinbaseInput):
            raise TypeError("first input of a coinbase must be a CoinbaseInput")
        return txin.height

    @property
    def reward(self) -> int:
        return self.output_value