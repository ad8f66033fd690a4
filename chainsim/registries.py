"""Global registries: archived transactions, network nodes and wallets."""

from __future__ import annotations

import random
from typing import Any, Iterable, Iterator

from chainsim.transactions import Transaction


class TransactionArchive:
    """Keeps every transaction handed to it."""

    def __init__(self) -> None:
        self._transactions: list[Transaction] = []

    def add_transaction(self, tx: Transaction) -> None:
        self._transactions.append(tx)

    def __len__(self) -> int:
        return len(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self._transactions)


class NodeDirectory:
    """The nodes that make up the network."""

    def __init__(self, nodes: Iterable[Any] = ()) -> None:
        self._nodes = list(nodes)

    def nodes(self) -> Iterator[Any]:
        """Yield each node in registration order."""
        yield from self._nodes


class WalletDirectory:
    """The wallets in the network, from which random addresses can be drawn."""

    def __init__(self, wallets: Iterable[Any] = ()) -> None:
        self._wallets = list(wallets)

    @property
    def wallets(self) -> tuple[Any, ...]:
        return tuple(self._wallets)

    def random_address(self, rng: random.Random | None = None) -> Any:
        """Pick a wallet uniformly at random and return a new address of it."""
        if not self._wallets:
            raise LookupError("no wallets registered")
        generator = rng if rng is not None else random.Random()
        wallet = self._wallets[generator.randint(0, len(self._wallets) - 1)]
        return wallet.new_address()