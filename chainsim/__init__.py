"""Object model for simulating a Bitcoin-like network: units, transactions,
blocks with unspent-output tracking, branch pruning, payloads and packets."""

__version__ = "0.1.0"

__all__ = [
    "units",
    "heavy",
    "transactions",
    "block",
    "chain",
    "payloads",
    "packet",
    "listener",
    "registries",
]