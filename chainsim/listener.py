"""A listener that ends the simulation once enough work has been observed."""

from __future__ import annotations

from typing import Any, Hashable

DEFAULT_BLOCKS_TARGET = 1456
DEFAULT_TRANSACTIONS_TARGET = 2678920


class SimulationEnd(Exception):
    """Raised to end the simulation normally."""


class StopSimulationListener:
    """Counts mined blocks and processed transactions and stops at the targets."""

    def __init__(
        self,
        block_mined_signal_id: Hashable = None,
        processed_transactions_signal_id: Hashable = None,
        *,
        blocks_target: int = DEFAULT_BLOCKS_TARGET,
        transactions_target: int = DEFAULT_TRANSACTIONS_TARGET,
    ) -> None:
        self.block_mined_signal_id = block_mined_signal_id
        self.processed_transactions_signal_id = processed_transactions_signal_id
        self.blocks_target = blocks_target
        self.transactions_target = transactions_target
        self.blocks_mined = 0
        self.processed_transactions = 0

    def receive_signal(self, signal_id: Hashable, value: Any = None) -> None:
        """Count one emission of ``signal_id``; raise SimulationEnd at the targets."""
        if signal_id == self.processed_transactions_signal_id:
            self.processed_transactions += 1
        if signal_id == self.block_mined_signal_id:
            self.blocks_mined += 1
        if (
            self.blocks_mined >= self.blocks_target
            and self.processed_transactions >= self.transactions_target
        ):
            raise SimulationEnd("simulation ended: targets reached")