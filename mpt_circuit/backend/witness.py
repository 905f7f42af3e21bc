"""Witness storage and the generators that fill it."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from ..primitives.field import GOLDILOCKS_PRIME
from .errors import WitnessGenerationError


class PartialWitness:
    """Assignment of canonical field elements to targets."""

    def __init__(self, num_targets: int):
        self.values: List[Optional[int]] = [None] * num_targets

    def set_target(self, target: int, value: int) -> None:
        value = int(value) % GOLDILOCKS_PRIME
        current = self.values[target]
        if current is not None and current != value:
            raise WitnessGenerationError(
                f"target {target} assigned twice: {current} then {value}"
            )
        self.values[target] = value

    def get_target(self, target: int) -> int:
        value = self.values[target]
        if value is None:
            raise WitnessGenerationError(f"target {target} read before it was assigned")
        return value

    def missing_targets(self) -> List[int]:
        return [t for t, v in enumerate(self.values) if v is None]


class WitnessGenerator(ABC):
    """One step of witness generation. Generators run in declaration order."""

    @abstractmethod
    def run(self, witness: PartialWitness) -> None:
        pass


@dataclass
class ArithmeticGate:
    """out = k0 * a * b + k1 * c"""
    a: int
    b: int
    c: int
    out: int
    k0: int
    k1: int


class ArithmeticGenerator(WitnessGenerator):
    """Computes the output target of an arithmetic gate from its inputs."""

    __slots__ = ("gate",)

    def __init__(self, gate: ArithmeticGate):
        self.gate = gate

    def run(self, witness: PartialWitness) -> None:
        g = self.gate
        a = witness.get_target(g.a)
        b = witness.get_target(g.b)
        c = witness.get_target(g.c)
        witness.set_target(g.out, (g.k0 * a * b + g.k1 * c) % GOLDILOCKS_PRIME)
