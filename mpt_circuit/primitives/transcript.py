"""
Native Poseidon2 sponge for Fiat-Shamir challenges.

Absorbed elements collect in a rate-sized block; a full block, or a squeeze
with a partial one, zero-pads the block, appends the capacity lanes of the
previous output and permutes. Squeezes then walk the fresh output from
lane 0 upward until it is exhausted or new input arrives.

frontend/challenger.py runs the same schedule over circuit variables, so
`seed_challenges` in eth/rlp/utils.py can predict in-circuit challenges.
"""
from typing import List

from .constants import HASH_SIZE
from .field import to_canonical
from .poseidon2 import poseidon2_hash


class Transcript:
    """
    Sponge over Goldilocks elements.

    Attributes:
        width: Permutation width, HASH_SIZE * arity (8, 12 or 16)
        rate: Elements absorbed per permutation, width - HASH_SIZE
        state: Output of the last permutation
        block: Elements absorbed since the last permutation
        unread: Output elements not yet squeezed
    """

    def __init__(self, arity: int = 3):
        if arity not in (2, 3, 4):
            raise ValueError(f"arity must be 2, 3, or 4, got {arity}")

        self.width = HASH_SIZE * arity
        self.rate = self.width - HASH_SIZE
        self.state: List[int] = [0] * self.width
        self.block: List[int] = []
        self.unread = 0

    def put(self, elements: List[int]) -> None:
        """Absorb field elements."""
        for element in elements:
            self.block.append(to_canonical(element))
            self.unread = 0
            if len(self.block) == self.rate:
                self._permute()

    def _permute(self) -> None:
        padded = self.block + [0] * (self.rate - len(self.block))
        self.state = poseidon2_hash(padded + self.state[:HASH_SIZE], self.width)
        self.block = []
        self.unread = self.width

    def squeeze(self) -> int:
        """Return the next challenge element."""
        if self.unread == 0:
            self._permute()
        value = self.state[self.width - self.unread]
        self.unread -= 1
        return value

    def get_challenges(self, n: int) -> List[int]:
        """Squeeze n base-field challenges, in order."""
        return [self.squeeze() for _ in range(n)]
