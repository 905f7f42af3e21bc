"""Primitives - field arithmetic, Poseidon2 and the native Fiat-Shamir sponge."""

from .constants import HASH_SIZE, ROUNDS_F, ROUNDS_P
from .field import (
    BYTES_PER_ELEMENT,
    FF,
    GOLDILOCKS_PRIME,
    inverse,
    le_sum_bytes,
    pack_bytes,
    to_canonical,
    to_ff_array,
)
from .poseidon2 import poseidon2_hash
from .transcript import Transcript

__all__ = [
    # Field
    "FF",
    "GOLDILOCKS_PRIME",
    "BYTES_PER_ELEMENT",
    "inverse",
    "le_sum_bytes",
    "pack_bytes",
    "to_canonical",
    "to_ff_array",
    # Poseidon2
    "HASH_SIZE",
    "ROUNDS_F",
    "ROUNDS_P",
    "poseidon2_hash",
    # Transcript
    "Transcript",
]
