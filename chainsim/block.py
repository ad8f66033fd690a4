"""Blocks, their headers, and the unspent outputs each block leaves behind."""

from __future__ import annotations

from typing import Any

from chainsim.heavy import ChainObject, HeavyObject, ObjectType
from chainsim.transactions import Coinbase, Transaction, TransactionOutput
from chainsim.units import compact_size

HEADER_BYTES = 80


def _check_index(index: int, size: int, *, allow_end: bool = False) -> None:
    limit = size + 1 if allow_end else size
    if index < 0 or index >= limit:
        raise IndexError(f"Array of size {size} indexed by {index}")


class BlockHeader(ChainObject):
    """The header of a block, linking it to the block before it."""

    def __init__(
        self,
        *,
        version: int = 1,
        prev_block: Block | None = None,
        merkle_root_hash: Any = None,
        time: float = 0.0,
        n_bits: Any = 0,
        nonce: int = 0,
    ) -> None:
        super().__init__(bit_length=HEADER_BYTES * 8)
        self.version = version
        self.prev_block = prev_block
        self.merkle_root_hash = merkle_root_hash
        self.time = time
        self.n_bits = n_bits
        self.nonce = nonce
        self._block: Block | None = None

    @property
    def object_type(self) -> ObjectType:
        return ObjectType.MSG_BLOCK

    @property
    def block(self) -> Block | None:
        """The block that holds this header, if any."""
        return self._block

    @property
    def prev_block_header(self) -> BlockHeader | None:
        if self.prev_block is not None:
            return self.prev_block.header
        return None

    @property
    def height(self) -> int:
        """Height of the block; a header with no predecessor is at height zero."""
        if self.prev_block_header is None:
            return 0
        if self._block is None:
            raise ValueError("header does not belong to a block")
        return self._block.height

    def delete_prev_block(self) -> None:
        """Drop the link to the previous block so older blocks can be freed."""
        self.prev_block = None

    def __str__(self) -> str:
        return (
            f"version={self.version}, merkleRootHash={self.merkle_root_hash}, "
            f"time={self.time}, nBits={self.n_bits}, nonce={self.nonce}; "
            f"{super().__str__()}"
        )


class Block(HeavyObject):
    """A block of transactions that tracks the unspent outputs per wallet."""

    def __init__(self, header: BlockHeader | None = None) -> None:
        super().__init__(bit_length=(HEADER_BYTES + 1) * 8)
        self._header: BlockHeader | None = None
        self._txns: list[Transaction | None] = []
        self._utxos: dict[Any, dict[int, TransactionOutput]] = {}
        if header is not None:
            self.header = header

    # Header handling.

    @property
    def header(self) -> BlockHeader | None:
        return self._header

    @header.setter
    def header(self, header: BlockHeader | None) -> None:
        if header is None:
            self.remove_header()
            return
        if self._header is not None:
            raise ValueError(
                "a header is already set, remove it first with remove_header()"
            )
        if header._block is not None and header._block is not self:
            raise ValueError("header already belongs to another block")
        header._block = self
        self._header = header
        self._rebuild_utxos()

    def remove_header(self) -> BlockHeader | None:
        """Detach and return the header; the unspent outputs are rebuilt."""
        header = self._header
        if header is not None:
            header._block = None
            self._header = None
            self._rebuild_utxos()
        return header

    def replace_header(self, header: BlockHeader) -> None:
        if self._header is not None:
            self._header._block = None
            self._header = None
        self.header = header

    @property
    def prev_block(self) -> Block | None:
        return self._header.prev_block if self._header is not None else None

    # Transactions.

    @property
    def txns(self) -> tuple[Transaction | None, ...]:
        return tuple(self._txns)

    @property
    def txn_count(self) -> int:
        return len(self._txns)

    @property
    def coinbase_tx(self) -> Coinbase:
        if not self._txns:
            raise IndexError("block has no transactions")
        tx = self._txns[0]
        if not isinstance(tx, Coinbase):
            raise TypeError("first transaction of a block must be a Coinbase")
        return tx

    @property
    def height(self) -> int:
        return self.coinbase_tx.height

    @property
    def reward(self) -> int:
        return self.coinbase_tx.reward

    def resize_txns(self, size: int) -> None:
        if size < 0:
            raise ValueError(f"Negative array size {size}")
        old = len(self._txns)
        if size > old:
            self.add_bytes(compact_size(size) - compact_size(old))
            self._txns.extend([None] * (size - old))
        elif size < old:
            self.subtract_bytes(compact_size(old) - compact_size(size))
            for tx in reversed(self._txns[size:]):
                if tx is not None:
                    self.subtract_bits(tx.bit_length)
                    self._update_on_remove(tx)
            del self._txns[size:]

    def set_txn(self, index: int, tx: Transaction | None) -> None:
        _check_index(index, len(self._txns))
        old = self._txns[index]
        if old is not None:
            self.subtract_bits(old.bit_length)
            self._update_on_remove(old)
        self._txns[index] = tx
        if tx is not None:
            self.add_bits(tx.bit_length)
            self._update_on_add(tx)

    def insert_txn(self, index: int, tx: Transaction | None) -> None:
        old = len(self._txns)
        _check_index(index, old, allow_end=True)
        self.add_bytes(compact_size(old + 1) - compact_size(old))
        self._txns.insert(index, tx)
        if tx is not None:
            self.add_bits(tx.bit_length)
            self._update_on_add(tx)

    def append_txn(self, tx: Transaction | None) -> None:
        self.insert_txn(len(self._txns), tx)

    def erase_txn(self, index: int) -> None:
        _check_index(index, len(self._txns))
        tx = self._txns[index]
        if tx is not None:
            self.subtract_bits(tx.bit_length)
            self._update_on_remove(tx)
        del self._txns[index]
        size = len(self._txns)
        self.subtract_bytes(compact_size(size + 1) - compact_size(size))

    # Unspent outputs.

    @property
    def utxo_count(self) -> int:
        return sum(len(outputs) for outputs in self._utxos.values())

    def utxos_for_wallet(self, wallet: Any) -> tuple[TransactionOutput, ...]:
        """Unspent outputs owned by ``wallet``, ordered by output id."""
        outputs = self._utxos.get(wallet)
        if not outputs:
            return ()
        return tuple(outputs[key] for key in sorted(outputs))

    def utxos_for_address(self, address: Any) -> tuple[TransactionOutput, ...]:
        """Unspent outputs paid to ``address``, ordered by output id."""
        return tuple(
            utxo
            for utxo in self.utxos_for_wallet(address.wallet)
            if utxo.address.index == address.index
        )

    def _add_utxo(self, utxo: TransactionOutput | None) -> None:
        if utxo is None:
            return
        self._utxos.setdefault(utxo.address.wallet, {})[utxo.id] = utxo

    def _remove_utxo(self, utxo: TransactionOutput | None) -> None:
        if utxo is None:
            return
        outputs = self._utxos.get(utxo.address.wallet)
        if outputs is not None:
            outputs.pop(utxo.id, None)

    def _update_on_add(self, tx: Transaction) -> None:
        for txin in tx.inputs:
            if txin is not None:
                self._remove_utxo(txin.prev_output)
        for txout in tx.outputs:
            self._add_utxo(txout)

    def _update_on_remove(self, tx: Transaction) -> None:
        for txout in tx.outputs:
            self._remove_utxo(txout)
        for txin in tx.inputs:
            if txin is not None:
                self._add_utxo(txin.prev_output)

    def _rebuild_utxos(self) -> None:
        self._utxos = {}
        prev = self.prev_block
        if prev is not None:
            self._utxos = {
                wallet: dict(outputs) for wallet, outputs in prev._utxos.items()
            }
        for tx in self._txns:
            if tx is not None:
                self._update_on_add(tx)

    def __str__(self) -> str:
        header = str(self._header) if self._header is not None else ""
        return f"header=[{header}], txn_count={self.txn_count}; {super().__str__()}"