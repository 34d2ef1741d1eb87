"""Korean-locale title collation.

Titles are compared with the Unicode Collation Algorithm (DUCET via
pyuca), with the Korean tailoring's script reorder applied on top:
Hangul sorts after digits and punctuation but before Latin and every
other script, so ["1", "가", "나", "a", "B", "Z"] is already in order.
"""

from __future__ import annotations

import unicodedata
from functools import lru_cache

from pyuca import Collator

_JAMO = range(0x1100, 0x1200)


@lru_cache(maxsize=1)
def _reorder_table() -> tuple[Collator, int, int, int]:
    """Collator plus (latin_start, hangul_low, hangul_high) primary weights."""
    collator = Collator()
    latin_start = collator.sort_key("a")[0]
    jamo_primaries = [
        key[0] for key in (collator.sort_key(chr(cp)) for cp in _JAMO) if key and key[0]
    ]
    return collator, latin_start, min(jamo_primaries), max(jamo_primaries)


def _reorder(weight: int, latin_start: int, low: int, high: int) -> int:
    # Move the Hangul block down to latin_start and shift the scripts it
    # jumps over up by its width; order within each block is unchanged.
    if weight < latin_start or weight > high:
        return weight
    if weight >= low:
        return latin_start + (weight - low)
    return weight + (high - low + 1)


def korean_sort_key(title: str) -> tuple[tuple[int, ...], tuple[int, ...], str]:
    """Sort key ordering titles the way Korean-locale collation does.

    Primary weights carry the script reorder; the remaining levels
    (accents, then case with lowercase first) break ties, and the NFC
    title makes the key total. Composed and decomposed Hangul give the
    same key.
    """
    composed = unicodedata.normalize("NFC", title)
    collator, latin_start, low, high = _reorder_table()
    weights = collator.sort_key(unicodedata.normalize("NFD", composed))
    split = weights.index(0) if 0 in weights else len(weights)
    primaries = tuple(_reorder(w, latin_start, low, high) for w in weights[:split])
    return primaries, tuple(weights[split:]), composed
