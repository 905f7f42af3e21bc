"""Hints backing the non-deterministic arithmetic gadgets of CircuitBuilder.

Each of these is paired, inside the builder, with constraints that pin the
hinted values down uniquely.
"""

from dataclasses import dataclass
from typing import ClassVar

from ..primitives.field import GOLDILOCKS_PRIME, inverse
from .hint import Hint, register_hint
from .streams import ValueStream
from .vars import BoolVariable, Variable


@register_hint
@dataclass(frozen=True)
class SplitBitsHint(Hint):
    """Little-endian bit decomposition of a field element into `num_bits` bits."""

    num_bits: int
    name: ClassVar[str] = "math.split_le_bits"

    def hint(self, input_stream: ValueStream, output_stream: ValueStream) -> None:
        value = input_stream.read_value(Variable)
        for i in range(self.num_bits):
            output_stream.write_value(BoolVariable, (value >> i) & 1)


@register_hint
@dataclass(frozen=True)
class InverseOrZeroHint(Hint):
    """1/x for x != 0, and 0 for x == 0."""

    name: ClassVar[str] = "math.inverse_or_zero"

    def hint(self, input_stream: ValueStream, output_stream: ValueStream) -> None:
        value = input_stream.read_value(Variable)
        output_stream.write_value(Variable, 0 if value == 0 else inverse(value))


@register_hint
@dataclass(frozen=True)
class DivRemHint(Hint):
    """Integer quotient and remainder of a canonical element by a constant."""

    divisor: int
    name: ClassVar[str] = "math.div_rem"

    def hint(self, input_stream: ValueStream, output_stream: ValueStream) -> None:
        value = input_stream.read_value(Variable) % GOLDILOCKS_PRIME
        q, r = divmod(value, self.divisor)
        output_stream.write_value(Variable, q)
        output_stream.write_value(Variable, r)
