"""Packed reference words naming dotted global paths.

The top two bits of the 32-bit word hold the chain length (0 to 3).  The
chain itself is stored as consecutive 10-bit constant-table indices starting
at bit 0, so ``math.floor`` is ``(2 << 30) | (floor << 10) | math``.
"""

from __future__ import annotations

from typing import Iterator, Sequence

INDEX_BITS = 10
INDEX_MASK = (1 << INDEX_BITS) - 1
MAX_CHAIN = 3

__all__ = ["INDEX_MASK", "MAX_CHAIN", "chain_length", "iter_reference", "pack_reference"]


def chain_length(word: int) -> int:
    return (word & 0xFFFFFFFF) >> 30


def iter_reference(word: int) -> Iterator[int]:
    """Yield the constant indices encoded in ``word``, lowest field first.

    Never fails; the indices are not bounds-checked here.
    """

    word &= 0xFFFFFFFF
    for position in range(chain_length(word)):
        yield (word >> (position * INDEX_BITS)) & INDEX_MASK


def pack_reference(indices: Sequence[int]) -> int:
    """Inverse of :func:`iter_reference`."""

    if len(indices) > MAX_CHAIN:
        raise ValueError(f"reference chains hold at most {MAX_CHAIN} indices")
    word = len(indices) << 30
    for position, index in enumerate(indices):
        if not 0 <= index <= INDEX_MASK:
            raise ValueError(f"reference index {index} does not fit in {INDEX_BITS} bits")
        word |= index << (position * INDEX_BITS)
    return word
