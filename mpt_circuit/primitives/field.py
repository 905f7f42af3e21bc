"""Goldilocks field GF(p).

Uses galois library for vectorized field arithmetic. FF is the field type;
scalar witness values are carried as canonical Python ints and lifted into
FF arrays when constraints are checked in bulk.
"""

from typing import List, Sequence

import galois
import numpy as np

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001

FF = galois.GF(GOLDILOCKS_PRIME)
"""Base field GF(p) - Goldilocks prime field."""

# Largest number of whole bytes that always packs below p
BYTES_PER_ELEMENT = 7


def to_canonical(value: int) -> int:
    """Reduce an integer (possibly negative) into [0, p)."""
    return int(value) % GOLDILOCKS_PRIME


def inverse(value: int) -> int:
    """Multiplicative inverse of a non-zero element."""
    if value % GOLDILOCKS_PRIME == 0:
        raise ZeroDivisionError("0 has no inverse in GF(p)")
    return int(FF(to_canonical(value)) ** -1)


def to_ff_array(values: Sequence[int]) -> FF:
    """Lift canonical ints into an FF array."""
    return FF(np.asarray(values, dtype=np.uint64))


def le_sum_bytes(data: Sequence[int]) -> int:
    """Little-endian byte packing: sum(data[i] * 256^i)."""
    acc = 0
    for i, b in enumerate(data):
        acc += int(b) << (8 * i)
    return acc


def pack_bytes(data: Sequence[int]) -> List[int]:
    """Pack bytes into field elements, BYTES_PER_ELEMENT bytes per element.

    Each chunk is packed little-endian, so every element is < 2^56 < p and the
    packing is injective for a fixed input length.
    """
    return [
        le_sum_bytes(data[i:i + BYTES_PER_ELEMENT])
        for i in range(0, len(data), BYTES_PER_ELEMENT)
    ]
