"""Tracking of every node's main branch and pruning of shared history."""

from __future__ import annotations

import logging

from chainsim.block import Block

_log = logging.getLogger(__name__)


class BranchTracker:
    """Remembers the main-branch tip of each node and prunes common old blocks."""

    def __init__(self) -> None:
        self.main_branch: dict[int, Block] = {}

    def advise_new_main_branch(self, module_id: int, block: Block) -> None:
        """Record ``block`` as the main-branch tip of node ``module_id``."""
        self.main_branch[module_id] = block

    def find_fork_block(self, a: Block | None, b: Block | None) -> Block:
        """Return the most recent block shared by the chains ending at ``a`` and ``b``."""
        while True:
            if a is None or b is None:
                raise LookupError("Fork block not resident in memory")
            if a is b:
                return a
            height_a, height_b = a.height, b.height
            if height_a > height_b:
                a = a.prev_block
            elif height_a < height_b:
                b = b.prev_block
            else:
                a, b = a.prev_block, b.prev_block

    def delete_old_blocks(self) -> int:
        """Unlink blocks older than the common fork's parent.

        Returns the height of that parent, or zero when nothing was pruned.
        """
        unique: dict[int, Block] = {}
        for block in self.main_branch.values():
            unique.setdefault(id(block), block)
        if not unique:
            return 0
        branches = iter(unique.values())
        fork = next(branches)
        for block in branches:
            fork = self.find_fork_block(fork, block)
        parent = fork.prev_block
        if parent is None:
            return 0
        height = parent.height
        _log.info("Deleting blocks older than height %d", height)
        if parent.header is not None:
            parent.header.delete_prev_block()
        return height