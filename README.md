# chainsim

Building blocks for simulating a Bitcoin-like peer-to-peer network. The package
models the objects such a simulation passes around and keeps track of their
sizes on the wire. It has no runtime dependencies.

## What is inside

- `chainsim.units`: CompactSize integers (`compact_size`, `encode_compact_size`,
  `decode_compact_size`), satoshi/BTC conversion (`satoshis`, `btcs`; negative
  amounts give zero), currency unit multipliers (`unit_multiplier`, `convert`)
  and hash-rate unit multipliers (`hashrate_multiplier`, `convert_hashrate`).
  Unknown unit names raise `ValueError`.
- `chainsim.heavy`: `HeavyObject`, a base that tracks a size in bits
  (`bit_length`, `byte_length`, `add_bits`, `add_bytes`, `subtract_bits`,
  `subtract_bytes`) and refuses to go negative; `ChainObject`, an abstract
  sized object with an `object_type`; and the `ObjectType` enum.
- `chainsim.transactions`: `TransactionOutput`, `TransactionInput`,
  `CoinbaseInput`, `Outpoint`, `Transaction` and `Coinbase`. A transaction
  keeps its byte length up to date as inputs and outputs are set, inserted,
  appended, erased or the lists resized, and can cache its input value,
  output value, fee and fee rate (`update_cache`, `build_cache`,
  `invalidate_cache`). `Coinbase.paying(address, reward, height)` builds a
  coinbase paying one address.
- `chainsim.block`: `BlockHeader` and `Block`. A block keeps the unspent
  outputs of each wallet as of that block, built from its previous block and
  its own transactions; query them with `utxos_for_wallet` and
  `utxos_for_address`, or count them with `utxo_count`.
- `chainsim.chain`: `BranchTracker` records the tip each node treats as its
  main branch (`advise_new_main_branch`), finds the common fork block of two
  chains (`find_fork_block`) and unlinks history no branch needs any more
  (`delete_old_blocks`, which returns the height it pruned at, or zero).
- `chainsim.payloads`: `PingPayload`, `PongPayload`, `VersionPayload`,
  `VerackPayload`, `BlockPayload`, `InvPayload`, `GetDataPayload`,
  `GetBlocksPayload`, `GetHeadersPayload`, `HeadersPayload` and `TxPayload`,
  together with `MessageKind`. Ping, pong and version payloads serialize with
  `raw_bytes()` and `raw_hex()`; the version payload's size follows its
  protocol version and user agent.
- `chainsim.packet`: `Packet` wraps a payload in the 24-byte message header,
  takes its command name from the payload's kind and computes the
  double-SHA-256 checksum (`compute_checksum`, `is_checksum_valid`,
  `set_checksum_valid`, `set_checksum_invalid`). `Network` names the start
  strings. `DirectBlockMsg` and `DirectTxMsg` hand a block or transaction to
  another node without serializing it.
- `chainsim.listener`: `StopSimulationListener` counts block-mined and
  processed-transaction signals and raises `SimulationEnd` when both targets
  are met (1456 blocks and 2678920 transactions by default).
- `chainsim.registries`: `TransactionArchive`, `NodeDirectory` and
  `WalletDirectory`, simulation-wide registries.

## Example

```python
from chainsim.units import compact_size, encode_compact_size, convert
from chainsim.payloads import PingPayload
from chainsim.packet import Packet

assert compact_size(300) == 3
assert encode_compact_size(10) == b"\x0a"
assert convert(1, "kBTC", "BTC") == 1000.0

packet = Packet(PingPayload(nonce=42))
assert packet.command_name == "ping"
assert packet.payload_size == 8
packet.set_checksum_valid(True)
assert packet.is_checksum_valid()
```

## What it does not do

- There is no simulation engine: no event scheduler, no clock, no network
  transport between nodes. The objects here are meant to be driven by one.
- There are no wallets, miners or nodes. Addresses and wallets are supplied by
  the caller: blocks expect an output's `address` to have `wallet` and `index`
  attributes, and `WalletDirectory.random_address` calls `new_address()` on a
  wallet.
- Block and transaction hashes are not computed, and only the ping, pong and
  version payloads have a byte form; the others carry a size but no bytes.
- There is no command-line program.

## Running the tests

```
pip install -e .[test]
pytest
```