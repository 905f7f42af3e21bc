"""
MPT node decoding circuits over the Goldilocks field.

This package provides:
- Goldilocks field arithmetic (via galois)
- Poseidon2 permutation and Fiat-Shamir transcript
- A circuit builder with typed variables, gadgets and hints
- Witness generation and constraint checking
- RLP decoding of Merkle-Patricia-Trie nodes, verified in-circuit by a
  randomized polynomial identity test

Usage:
    from mpt_circuit import ArrayVariable, BoolVariable, ByteVariable, CircuitBuilder, Variable
    from mpt_circuit.eth.rlp import BRANCH_NODE, decode_mpt_node

    builder = CircuitBuilder()
    encoded = builder.read(ArrayVariable.of(ByteVariable, 600))
    length = builder.read(Variable)
    finish = builder.read(BoolVariable)
    seed = builder.read(ArrayVariable.of(ByteVariable, 16))
    items, lens, total = decode_mpt_node(builder, encoded, length, finish, seed, BRANCH_NODE)
    builder.write(items)
    circuit = builder.build()
"""

from .backend import (
    Circuit,
    CircuitError,
    HintShapeError,
    UnsatisfiedConstraintError,
    WitnessGenerationError,
)
from .frontend import (
    ArrayVariable,
    BoolVariable,
    ByteVariable,
    CircuitBuilder,
    Hint,
    ValueStream,
    Variable,
    VariableStream,
    register_hint,
)
from .primitives import FF, GOLDILOCKS_PRIME, Transcript

__version__ = "0.1.0"
__all__ = [
    # Field
    "FF",
    "GOLDILOCKS_PRIME",
    "Transcript",
    # Circuits
    "Circuit",
    "CircuitBuilder",
    "ArrayVariable",
    "BoolVariable",
    "ByteVariable",
    "Variable",
    # Hints
    "Hint",
    "register_hint",
    "ValueStream",
    "VariableStream",
    # Errors
    "CircuitError",
    "HintShapeError",
    "UnsatisfiedConstraintError",
    "WitnessGenerationError",
]
