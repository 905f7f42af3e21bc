"""Errors raised while generating or checking a witness."""


class CircuitError(Exception):
    """Base class for witness-time circuit failures."""


class HintShapeError(CircuitError):
    """A hint's streams disagree with the types declared when the circuit was built."""


class WitnessGenerationError(CircuitError):
    """A target could not be assigned, or was assigned two different values."""


class UnsatisfiedConstraintError(CircuitError):
    """The generated witness violates at least one constraint."""
