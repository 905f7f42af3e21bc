"""Hash gadgets."""

from .poseidon2 import poseidon2_permutation

__all__ = ["poseidon2_permutation"]
