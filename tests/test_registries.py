import random

import pytest

from chainsim.registries import NodeDirectory, TransactionArchive, WalletDirectory
from chainsim.transactions import Transaction


class FakeWallet:
    def __init__(self, label):
        self.label = label
        self.issued = 0

    def new_address(self):
        self.issued += 1
        return (self.label, self.issued)


def test_archive_keeps_transactions_in_order():
    archive = TransactionArchive()
    txs = [Transaction(), Transaction()]
    for tx in txs:
        archive.add_transaction(tx)
    assert len(archive) == 2
    assert list(archive) == txs


def test_node_directory_yields_nodes():
    directory = NodeDirectory(["a", "b", "c"])
    assert list(directory.nodes()) == ["a", "b", "c"]
    assert list(NodeDirectory().nodes()) == []


def test_random_address_from_single_wallet():
    wallet = FakeWallet("w")
    directory = WalletDirectory([wallet])
    assert directory.random_address(random.Random(1)) == ("w", 1)
    assert directory.random_address(random.Random(2)) == ("w", 2)


def test_random_address_comes_from_registered_wallets():
    wallets = [FakeWallet(name) for name in "xyz"]
    directory = WalletDirectory(wallets)
    rng = random.Random(0)
    labels = {directory.random_address(rng)[0] for _ in range(50)}
    assert labels <= {"x", "y", "z"}
    assert sum(w.issued for w in wallets) == 50


def test_random_address_is_reproducible_with_seed():
    first = WalletDirectory([FakeWallet(n) for n in "abcd"])
    second = WalletDirectory([FakeWallet(n) for n in "abcd"])
    a = [first.random_address(random.Random(9))[0] for _ in range(3)]
    b = [second.random_address(random.Random(9))[0] for _ in range(3)]
    assert a == b


def test_random_address_without_wallets_raises():
    with pytest.raises(LookupError):
        WalletDirectory().random_address(random.Random(0))