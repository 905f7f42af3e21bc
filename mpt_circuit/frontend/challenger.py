"""In-circuit Fiat-Shamir challenger.

RecursiveChallenger runs the absorb / permute / squeeze schedule of
primitives.transcript.Transcript over circuit variables, so a challenge
derived here equals the one a native Transcript squeezes from the same
absorbed elements. A challenger is created per verification call and
never shared.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

from ..primitives.constants import HASH_SIZE
from ..primitives.field import BYTES_PER_ELEMENT
from .hash.poseidon2 import poseidon2_permutation
from .vars import ByteVariable, Variable

if TYPE_CHECKING:
    from .builder import CircuitBuilder


class RecursiveChallenger:
    """Poseidon2 sponge over circuit variables."""

    def __init__(self, builder: "CircuitBuilder", arity: int = 3):
        if arity not in [2, 3, 4]:
            raise ValueError(f"arity must be 2, 3, or 4, got {arity}")

        self.builder = builder
        self.arity = arity

        self.transcript_pending_size = HASH_SIZE * (arity - 1)  # rate
        self.transcript_out_size = HASH_SIZE * arity

        zero = builder.zero()
        self.state: List[Variable] = [zero] * self.transcript_out_size
        self.pending: List[Variable] = []
        self.out: List[Variable] = [zero] * self.transcript_out_size
        self.out_cursor = 0

    def observe_element(self, element: Variable) -> None:
        self.pending.append(element)
        self.out_cursor = 0  # Invalidate cached output

        if len(self.pending) == self.transcript_pending_size:
            self._update_state()

    def observe_elements(self, elements: Sequence[Variable]) -> None:
        for element in elements:
            self.observe_element(element)

    def observe_bytes(self, data: Sequence[ByteVariable]) -> int:
        """
        Pack bytes little-endian, BYTES_PER_ELEMENT per element, and observe them.

        Returns:
            Number of bits observed
        """
        builder = self.builder
        for i in range(0, len(data), BYTES_PER_ELEMENT):
            acc = builder.zero()
            for j, byte in enumerate(data[i:i + BYTES_PER_ELEMENT]):
                acc = builder.arithmetic(1 << (8 * j), builder.byte_to_variable(byte),
                                         builder.one(), 1, acc)
            self.observe_element(acc)
        return 8 * len(data)

    def _update_state(self) -> None:
        zero = self.builder.zero()
        pending = self.pending + [zero] * (self.transcript_pending_size - len(self.pending))
        inputs = pending + self.state[:HASH_SIZE]

        self.out = poseidon2_permutation(self.builder, inputs)

        self.out_cursor = self.transcript_out_size
        self.pending = []
        self.state = list(self.out)

    def get_challenge(self) -> Variable:
        if self.out_cursor == 0:
            self._update_state()

        idx = (self.transcript_out_size - self.out_cursor) % self.transcript_out_size
        result = self.out[idx]
        self.out_cursor -= 1
        return result

    def get_n_challenges(self, n: int) -> List[Variable]:
        return [self.get_challenge() for _ in range(n)]
