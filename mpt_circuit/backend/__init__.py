"""Backend - built circuits, witness generation and constraint checking."""

from .circuit import Circuit, CircuitInput, CircuitOutput
from .errors import (
    CircuitError,
    HintShapeError,
    UnsatisfiedConstraintError,
    WitnessGenerationError,
)
from .witness import ArithmeticGate, PartialWitness, WitnessGenerator

__all__ = [
    "Circuit",
    "CircuitInput",
    "CircuitOutput",
    "CircuitError",
    "HintShapeError",
    "UnsatisfiedConstraintError",
    "WitnessGenerationError",
    "ArithmeticGate",
    "PartialWitness",
    "WitnessGenerator",
]
