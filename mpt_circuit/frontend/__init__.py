"""Frontend - variables, streams, hints and the circuit builder."""

from .builder import COMPARISON_BITS, CircuitBuilder
from .challenger import RecursiveChallenger
from .hint import HINT_REGISTRY, Hint, HintGenerator, get_hint, hint_from_dict, register_hint
from .streams import OutputVariableStream, ValueStream, VariableStream
from .vars import ArrayType, ArrayVariable, BoolVariable, ByteVariable, CircuitVariable, Variable

__all__ = [
    # Builder
    "CircuitBuilder",
    "COMPARISON_BITS",
    "RecursiveChallenger",
    # Hints
    "Hint",
    "HintGenerator",
    "HINT_REGISTRY",
    "register_hint",
    "get_hint",
    "hint_from_dict",
    # Streams
    "VariableStream",
    "ValueStream",
    "OutputVariableStream",
    # Variables
    "CircuitVariable",
    "Variable",
    "BoolVariable",
    "ByteVariable",
    "ArrayVariable",
    "ArrayType",
]
