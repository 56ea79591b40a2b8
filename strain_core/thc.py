"""Deterministic THC range derivation.

Strain names are hashed twice (two fixed seeds) with a modified FNV-1a rolling
hash and mapped onto the 20.5%-26.5% band, so the same name always shows the
same range without anything being stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterator, MutableMapping, NamedTuple, Optional


LOW_SEED = 2166136261
HIGH_SEED = 424242424

THC_FLOOR = 20.5
THC_CEILING = 26.5
HASH_MODULUS = 100000

EN_DASH = "–"

_UINT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def round_half_up(value: float, ndigits: int = 0) -> float:
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def _int32(value: int) -> int:
    """Wrap an arbitrary Python int to two's-complement signed 32-bit."""
    value &= _UINT32_MASK
    return value - 0x100000000 if value & _INT32_SIGN else value


def _code_units(key: str) -> Iterator[int]:
    # UTF-16 code units, so astral characters hash as surrogate pairs.
    data = key.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def name_hash(key: str, seed: int) -> int:
    acc = _int32(seed)
    for unit in _code_units(key):
        acc = _int32(acc ^ unit)
        acc = _int32(acc + (acc << 1) + (acc << 4) + (acc << 7) + (acc << 8) + (acc << 24))
    return abs(acc) % HASH_MODULUS


def _scale(raw: int) -> float:
    frac = raw / HASH_MODULUS
    return round_half_up(THC_FLOOR + frac * (THC_CEILING - THC_FLOOR), 2)


class ThcRange(NamedTuple):
    low: float
    high: float


def derive_range(key: str) -> ThcRange:
    """Return the (low, high) THC percentages for a strain name.

    Total over every string, the empty one included. ``low <= high`` holds by
    construction, whichever seed produced the smaller value.
    """
    a = _scale(name_hash(key, LOW_SEED))
    b = _scale(name_hash(key, HIGH_SEED))
    return ThcRange(min(a, b), max(a, b))


@dataclass(frozen=True)
class ThcView:
    low: float
    high: float
    average: float
    display: str

    @property
    def range(self) -> ThcRange:
        return ThcRange(self.low, self.high)

    def to_dict(self) -> Dict[str, object]:
        return {
            "range": [self.low, self.high],
            "low": self.low,
            "high": self.high,
            "average": self.average,
            "display": self.display,
        }


def format_thc_display(low: float, high: float) -> str:
    return f"{low:.2f}%{EN_DASH}{high:.2f}%"


def build_view(key: str) -> ThcView:
    low, high = derive_range(key)
    return ThcView(
        low=low,
        high=high,
        average=round_half_up((low + high) / 2, 1),
        display=format_thc_display(low, high),
    )


class ThcViewCache:
    """Per-name memo of derived views.

    Owned by whoever renders (an API request, a Streamlit session). Concurrent
    population may compute a view twice; both results are identical.
    """

    def __init__(self, store: Optional[MutableMapping[str, ThcView]] = None) -> None:
        self._store: MutableMapping[str, ThcView] = store if store is not None else {}

    def get(self, key: str) -> ThcView:
        view = self._store.get(key)
        if view is None:
            view = build_view(key)
            self._store[key] = view
        return view

    def clear(self) -> None:
        self._store.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)


def get_view(key: str, cache: Optional[ThcViewCache] = None) -> ThcView:
    if cache is None:
        return build_view(key)
    return cache.get(key)
