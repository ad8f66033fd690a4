"""Compact-size integers, bitcoin amount units and hashrate units."""

from __future__ import annotations

_UINT64_MAX = 0xFFFF_FFFF_FFFF_FFFF

# Marker byte that opens each wide compact-size form, with the width of the
# little-endian integer that follows it.
_WIDE_FORMS = ((0xFFFF, 0xFD, 2), (0xFFFF_FFFF, 0xFE, 4), (_UINT64_MAX, 0xFF, 8))
_MARKER_WIDTHS = {marker: width for _, marker, width in _WIDE_FORMS}


def _check_uint64(value: int) -> None:
    if value < 0 or value > _UINT64_MAX:
        raise ValueError(f"compact size out of range: {value}")


def compact_size(value: int) -> int:
    """Return how many bytes the compact-size encoding of ``value`` takes."""
    _check_uint64(value)
    if value < 253:
        return 1
    if value <= 0xFFFF:
        return 3
    if value <= 0xFFFF_FFFF:
        return 5
    return 9


def encode_compact_size(value: int) -> bytes:
    """Encode ``value`` as a compact-size integer."""
    _check_uint64(value)
    if value < 253:
        return bytes([value])
    for limit, marker, width in _WIDE_FORMS:
        if value <= limit:
            return bytes([marker]) + value.to_bytes(width, "little")
    raise AssertionError("unreachable")


def decode_compact_size(data: bytes | bytearray | None) -> int:
    """Decode the compact-size integer at the start of ``data``.

    An absent or empty buffer decodes to zero.
    """
    if not data:
        return 0
    marker = data[0]
    width = _MARKER_WIDTHS.get(marker)
    if width is None:
        return marker
    if len(data) < 1 + width:
        raise ValueError(
            f"compact size with marker 0x{marker:02x} needs {width} more bytes"
        )
    return int.from_bytes(bytes(data[1 : 1 + width]), "little")


def satoshis(btcs: float) -> int:
    """Convert an amount in bitcoins to satoshis; negative amounts give zero."""
    if btcs < 0:
        return 0
    return int(btcs * 1e8)


def btcs(satoshis: int) -> float:
    """Convert an amount in satoshis to bitcoins; negative amounts give zero."""
    if satoshis < 0:
        return 0.0
    return float(satoshis) / 1e8


def _hashrate_spellings(prefix: str) -> list[str]:
    return [
        f"{prefix}H/s",
        f"{prefix}H/S",
        f"{prefix}h/s",
        f"{prefix}Hps",
        f"{prefix}hps",
        f"{prefix}HPS",
    ]


def _build_hashrate_table() -> dict[str, float]:
    table: dict[str, float] = {}
    prefixes = (
        ("Y", 1e24),
        ("Z", 1e21),
        ("E", 1e18),
        ("P", 1e15),
        ("T", 1e12),
        ("G", 1e9),
        ("M", 1e6),
        ("k", 1e3),
        ("h", 1e2),
        ("da", 10.0),
        ("d", 10.0),
        ("", 1.0),
    )
    for prefix, multiplier in prefixes:
        for spelling in _hashrate_spellings(prefix):
            table[spelling] = multiplier
    for spelling in ("hash", "Hash", "HASH"):
        table[spelling] = 1.0
    return table


_HASHRATE_UNITS = _build_hashrate_table()

_CURRENCY_UNITS: dict[str, float] = {
    "TAM": 2814749.76710656,
    "tam": 2814749.76710656,
    "MBTC": 1e6,
    "Mbtc": 1e6,
    "kBTC": 1e3,
    "kbtc": 1e3,
    "KBTC": 1e3,
    "Kbtc": 1e3,
    "hBTC": 1e2,
    "hbtc": 1e2,
    "HBTC": 1e2,
    "Hbtc": 1e2,
    "bTBC": 42.94967296,
    "btbc": 42.94967296,
    "BTBC": 42.94967296,
    "Btbc": 42.94967296,
    "daBTC": 10.0,
    "dabtc": 10.0,
    "DABTC": 10.0,
    "DAbtc": 10.0,
    "DBTC": 10.0,
    "Dbtc": 10.0,
    "mTBC": 2.68435456,
    "mtbc": 2.68435456,
    "BTC": 1.0,
    "btc": 1.0,
    "sTBC": 0.16777216,
    "stbc": 0.16777216,
    "dBTC": 0.1,
    "dbtc": 0.1,
    "tTBC": 0.01048576,
    "ttbc": 0.01048576,
    "cBTC": 1e-2,
    "cbtc": 1e-2,
    "mBTC": 1e-3,
    "mbtc": 1e-3,
    "TBC": 0.00065536,
    "tbc": 0.00065536,
    "TBCt": 0.00004096,
    "tbct": 0.00004096,
    "TBCs": 0.00000256,
    "tbcs": 0.00000256,
    "uBTC": 1e-6,
    "ubtc": 1e-6,
    "TBCm": 0.00000016,
    "tbcm": 0.00000016,
    "FIN": 1e-7,
    "fin": 1e-7,
    "TBCb": 1e-8,
    "tbcb": 1e-8,
    "SAT": 1e-8,
    "sat": 1e-8,
    "mSAT": 1e-11,
    "msat": 1e-11,
}


def hashrate_multiplier(unit: str) -> float:
    """Return how many hashes per second one ``unit`` stands for."""
    try:
        return _HASHRATE_UNITS[unit]
    except KeyError:
        raise ValueError(f"Unknown unit {unit}") from None


def unit_multiplier(unit: str) -> float:
    """Return how many bitcoins one ``unit`` stands for."""
    try:
        return _CURRENCY_UNITS[unit]
    except KeyError:
        raise ValueError(f"Unknown unit {unit}") from None


def convert(value: float, from_unit: str, to_unit: str) -> float:
    """Convert an amount between two currency units."""
    return value * unit_multiplier(from_unit) / unit_multiplier(to_unit)


def convert_hashrate(value: float, from_unit: str, to_unit: str) -> float:
    """Convert a hashrate between two hashrate units."""
    return value * hashrate_multiplier(from_unit) / hashrate_multiplier(to_unit)