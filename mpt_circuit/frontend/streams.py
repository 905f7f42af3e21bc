"""Streams passing data into and out of hints.

VariableStream is the circuit-side view (targets, fixed at build time);
ValueStream is the witness-side view (concrete field elements, alive only
while a hint runs). OutputVariableStream is the handle returned by
`CircuitBuilder.hint`: each typed read declares fresh targets that the hint
must fill, in the same order it writes them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

from ..backend.errors import HintShapeError
from ..primitives.field import to_canonical

if TYPE_CHECKING:
    from .builder import CircuitBuilder
    from .hint import HintGenerator
    from .vars import CircuitVariable


class VariableStream:
    """Ordered targets handed to a hint as its input."""

    def __init__(self):
        self._targets: List[int] = []

    def write(self, var: "CircuitVariable") -> None:
        self._targets.extend(var.targets())

    def write_all(self, variables: Sequence["CircuitVariable"]) -> None:
        for var in variables:
            self.write(var)

    @property
    def targets(self) -> List[int]:
        return list(self._targets)

    def __len__(self) -> int:
        return len(self._targets)


class ValueStream:
    """Ordered field elements read and written by a hint body."""

    def __init__(self, values: Optional[Sequence[int]] = None, hint_name: str = "<hint>"):
        self._values: List[int] = [to_canonical(v) for v in (values or [])]
        self._cursor = 0
        self._hint_name = hint_name

    def __len__(self) -> int:
        return len(self._values)

    @property
    def values(self) -> List[int]:
        return list(self._values)

    def remaining(self) -> int:
        return len(self._values) - self._cursor

    def read_exact(self, n: int) -> List[int]:
        if n > self.remaining():
            raise HintShapeError(
                f"hint '{self._hint_name}' read {n} elements but only "
                f"{self.remaining()} remain in its input stream"
            )
        out = self._values[self._cursor:self._cursor + n]
        self._cursor += n
        return out

    def read_value(self, var_type):
        """Read the next value of `var_type` (a variable class or ArrayType)."""
        return var_type.value_from_elements(self.read_exact(var_type.nb_elements()))

    def write_slice(self, values: Sequence[int]) -> None:
        self._values.extend(to_canonical(v) for v in values)

    def write_value(self, var_type, value) -> None:
        self.write_slice(var_type.elements_from_value(value))


class OutputVariableStream:
    """Handle to a hint's output; typed reads declare the hint's output variables."""

    def __init__(self, generator: "HintGenerator"):
        self._generator = generator

    def read(self, var_type, builder: "CircuitBuilder"):
        targets = builder.add_virtual_targets(var_type.nb_elements())
        self._generator.output_targets.extend(targets)
        var = var_type.from_targets(targets)
        var_type.assert_is_valid(builder, var)
        return var
