"""Poseidon2 parameters for the Goldilocks field.

Round constants and internal diagonals are expanded from SHAKE-256 over a
domain tag that names the field, width and round counts. Sampling rejects
64-bit words >= p so every constant is uniform in GF(p).

This is a project-specific Poseidon2 instance. It is NOT the published
Goldilocks parameter set (the Horizen Labs constants used by plonky3 and
zkVM provers), the internal diagonals are not checked for the invertibility
and subspace-trail conditions of the Poseidon2 paper, and outputs do not
match published test vectors. It serves only as the Fiat-Shamir sponge of
this package, where native and in-circuit code share the same tables.
"""

import hashlib
from functools import lru_cache
from typing import List

from .field import GOLDILOCKS_PRIME

ROUNDS_F = 8
"""Full rounds, split evenly before and after the partial rounds."""

ROUNDS_P = 22
"""Partial rounds (S-box on the first lane only)."""

SUPPORTED_WIDTHS = (4, 8, 12, 16)

HASH_SIZE = 4
"""Sponge capacity in field elements."""


def _expand(tag: str, count: int) -> List[int]:
    out: List[int] = []
    n_bytes = 8 * count
    while len(out) < count:
        # Over-draw so rejections rarely force a second pass
        n_bytes = 2 * n_bytes
        stream = hashlib.shake_256(tag.encode()).digest(n_bytes)
        out = []
        for i in range(0, n_bytes, 8):
            word = int.from_bytes(stream[i:i + 8], "little")
            if word < GOLDILOCKS_PRIME:
                out.append(word)
            if len(out) == count:
                break
    return out


def _check_width(width: int) -> None:
    if width not in SUPPORTED_WIDTHS:
        raise ValueError(f"width must be one of {SUPPORTED_WIDTHS}, got {width}")


@lru_cache(maxsize=None)
def round_constants(width: int) -> tuple:
    """Flat round-constant table: full rounds use `width` each, partial use 1."""
    _check_width(width)
    count = ROUNDS_F * width + ROUNDS_P
    tag = f"mpt-circuit/poseidon2/goldilocks/rc/w{width}/f{ROUNDS_F}/p{ROUNDS_P}"
    return tuple(_expand(tag, count))


@lru_cache(maxsize=None)
def internal_diag(width: int) -> tuple:
    """Diagonal D of the internal layer x[i] <- x[i] * D[i] + sum(x)."""
    _check_width(width)
    tag = f"mpt-circuit/poseidon2/goldilocks/diag/w{width}"
    # 0 and 1 are excluded so no lane collapses to the plain sum
    return tuple(2 + d % (GOLDILOCKS_PRIME - 2) for d in _expand(tag, width))
