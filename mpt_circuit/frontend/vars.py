"""Typed circuit variables.

A circuit variable is a fixed-size bundle of targets (indices into the
witness). Every type knows how many field elements it spans and how to move
between its targets, its field elements and its Python value. Fixed-length
arrays are described by `ArrayVariable.of(elem_type, n)`, a type descriptor
exposing the same protocol as the scalar variable classes.

    Variable       -> int (canonical field element)
    BoolVariable   -> bool
    ByteVariable   -> int in [0, 256), stored as 8 big-endian bits
    ArrayVariable  -> list of element values
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Sequence

from ..primitives.field import GOLDILOCKS_PRIME, to_canonical

if TYPE_CHECKING:
    from ..backend.witness import PartialWitness
    from .builder import CircuitBuilder


class CircuitVariable:
    """Protocol shared by every variable type.

    Subclasses implement `targets`, and the classmethods `nb_elements`,
    `from_targets`, `elements_from_value`, `value_from_elements`.
    """

    def targets(self) -> List[int]:
        raise NotImplementedError

    @classmethod
    def nb_elements(cls) -> int:
        raise NotImplementedError

    @classmethod
    def from_targets(cls, targets: Sequence[int]) -> "CircuitVariable":
        raise NotImplementedError

    @classmethod
    def elements_from_value(cls, value) -> List[int]:
        raise NotImplementedError

    @classmethod
    def value_from_elements(cls, elements: Sequence[int]):
        raise NotImplementedError

    @classmethod
    def assert_is_valid(cls, builder: "CircuitBuilder", var: "CircuitVariable") -> None:
        """Add the constraints every value of this type must satisfy."""

    def get(self, witness: "PartialWitness"):
        return self.value_from_elements([witness.get_target(t) for t in self.targets()])


class Variable(CircuitVariable):
    """A single field element."""

    __slots__ = ("target",)

    def __init__(self, target: int):
        self.target = target

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.target})"

    def targets(self) -> List[int]:
        return [self.target]

    @classmethod
    def nb_elements(cls) -> int:
        return 1

    @classmethod
    def from_targets(cls, targets: Sequence[int]) -> "Variable":
        if len(targets) != 1:
            raise ValueError(f"Variable spans 1 target, got {len(targets)}")
        return cls(targets[0])

    @classmethod
    def elements_from_value(cls, value) -> List[int]:
        return [to_canonical(value)]

    @classmethod
    def value_from_elements(cls, elements: Sequence[int]) -> int:
        return int(elements[0]) % GOLDILOCKS_PRIME


class BoolVariable(Variable):
    """A field element constrained to {0, 1}."""

    @classmethod
    def elements_from_value(cls, value) -> List[int]:
        return [1 if value else 0]

    @classmethod
    def value_from_elements(cls, elements: Sequence[int]) -> bool:
        e = int(elements[0])
        if e not in (0, 1):
            raise ValueError(f"boolean element must be 0 or 1, got {e}")
        return e == 1

    @classmethod
    def assert_is_valid(cls, builder: "CircuitBuilder", var: "BoolVariable") -> None:
        builder.assert_bool(var)


class ByteVariable(CircuitVariable):
    """Eight boolean targets, most significant bit first."""

    __slots__ = ("bits",)

    def __init__(self, bits: Sequence[BoolVariable]):
        if len(bits) != 8:
            raise ValueError(f"ByteVariable needs 8 bits, got {len(bits)}")
        self.bits = list(bits)

    def __repr__(self) -> str:
        return f"ByteVariable({[b.target for b in self.bits]})"

    def targets(self) -> List[int]:
        return [b.target for b in self.bits]

    @classmethod
    def nb_elements(cls) -> int:
        return 8

    @classmethod
    def from_targets(cls, targets: Sequence[int]) -> "ByteVariable":
        if len(targets) != 8:
            raise ValueError(f"ByteVariable spans 8 targets, got {len(targets)}")
        return cls([BoolVariable(t) for t in targets])

    @classmethod
    def elements_from_value(cls, value) -> List[int]:
        value = int(value)
        if not 0 <= value < 256:
            raise ValueError(f"byte value out of range: {value}")
        return [(value >> (7 - i)) & 1 for i in range(8)]

    @classmethod
    def value_from_elements(cls, elements: Sequence[int]) -> int:
        acc = 0
        for e in elements:
            acc = (acc << 1) | int(BoolVariable.value_from_elements([e]))
        return acc

    @classmethod
    def assert_is_valid(cls, builder: "CircuitBuilder", var: "ByteVariable") -> None:
        for bit in var.bits:
            builder.assert_bool(bit)


@dataclass(frozen=True)
class ArrayType:
    """Type descriptor for a fixed-length array of `elem_type`."""

    elem_type: object
    length: int

    def nb_elements(self) -> int:
        return self.elem_type.nb_elements() * self.length

    def from_targets(self, targets: Sequence[int]) -> "ArrayVariable":
        if len(targets) != self.nb_elements():
            raise ValueError(f"array spans {self.nb_elements()} targets, got {len(targets)}")
        size = self.elem_type.nb_elements()
        return ArrayVariable(
            [self.elem_type.from_targets(targets[i * size:(i + 1) * size]) for i in range(self.length)]
        )

    def elements_from_value(self, value) -> List[int]:
        value = list(value)
        if len(value) != self.length:
            raise ValueError(f"expected {self.length} values, got {len(value)}")
        out: List[int] = []
        for v in value:
            out.extend(self.elem_type.elements_from_value(v))
        return out

    def value_from_elements(self, elements: Sequence[int]) -> list:
        size = self.elem_type.nb_elements()
        return [
            self.elem_type.value_from_elements(elements[i * size:(i + 1) * size])
            for i in range(self.length)
        ]

    def assert_is_valid(self, builder: "CircuitBuilder", var: "ArrayVariable") -> None:
        for elem in var:
            self.elem_type.assert_is_valid(builder, elem)


class ArrayVariable(CircuitVariable):
    """Fixed-length sequence of variables of one type."""

    __slots__ = ("data",)

    def __init__(self, data: Sequence[CircuitVariable]):
        self.data = list(data)

    @staticmethod
    def of(elem_type, length: int) -> ArrayType:
        return ArrayType(elem_type, length)

    def __len__(self) -> int:
        return len(self.data)

    def __getitem__(self, i):
        return self.data[i]

    def __iter__(self) -> Iterator[CircuitVariable]:
        return iter(self.data)

    def targets(self) -> List[int]:
        out: List[int] = []
        for v in self.data:
            out.extend(v.targets())
        return out

    def get(self, witness: "PartialWitness") -> list:
        return [v.get(witness) for v in self.data]
