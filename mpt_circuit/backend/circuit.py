"""Built circuits: witness generation and constraint checking.

A Circuit is the static output of CircuitBuilder.build(). Proving here means
producing a witness that satisfies every constraint:

1. constants and circuit inputs are assigned,
2. generators (arithmetic gates, hints) run strictly in declaration order,
3. all gates, constants and copy constraints are checked in bulk over GF(p).

Hint failures surface as HintShapeError / WitnessGenerationError during step
2; an inconsistent hint or a false statement surfaces as
UnsatisfiedConstraintError after step 3.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np

from ..primitives.field import FF, to_ff_array
from .errors import UnsatisfiedConstraintError, WitnessGenerationError
from .witness import ArithmeticGate, PartialWitness, WitnessGenerator


@dataclass
class Circuit:
    """Static circuit description."""
    num_targets: int
    gates: List[ArithmeticGate] = field(default_factory=list)
    constant_targets: Dict[int, int] = field(default_factory=dict)
    copy_constraints: List[Tuple[int, int]] = field(default_factory=list)
    generators: List[WitnessGenerator] = field(default_factory=list)
    input_targets: List[int] = field(default_factory=list)
    output_targets: List[int] = field(default_factory=list)

    def input(self) -> "CircuitInput":
        return CircuitInput()

    def generate_witness(self, inputs: "CircuitInput") -> PartialWitness:
        """
        Assign every target by running the circuit's generators.

        Raises:
            ValueError: If the number of input elements does not match the circuit
            HintShapeError: If a hint disagrees with its declared streams
            WitnessGenerationError: If a target stays unassigned or conflicts
        """
        if len(inputs.elements) != len(self.input_targets):
            raise ValueError(
                f"circuit expects {len(self.input_targets)} input elements, "
                f"got {len(inputs.elements)}"
            )

        witness = PartialWitness(self.num_targets)
        for target, value in self.constant_targets.items():
            witness.set_target(target, value)
        for target, value in zip(self.input_targets, inputs.elements):
            witness.set_target(target, value)

        for generator in self.generators:
            generator.run(witness)

        missing = witness.missing_targets()
        if missing:
            raise WitnessGenerationError(
                f"{len(missing)} targets left unassigned (first: {missing[:8]})"
            )
        return witness

    def check_constraints(self, witness: PartialWitness) -> bool:
        """Check every constraint against a complete witness."""
        w = to_ff_array(witness.values)
        ok = True

        if self.gates:
            a = np.array([g.a for g in self.gates], dtype=np.int64)
            b = np.array([g.b for g in self.gates], dtype=np.int64)
            c = np.array([g.c for g in self.gates], dtype=np.int64)
            out = np.array([g.out for g in self.gates], dtype=np.int64)
            k0 = to_ff_array([g.k0 for g in self.gates])
            k1 = to_ff_array([g.k1 for g in self.gates])

            residual = k0 * w[a] * w[b] + k1 * w[c] - w[out]
            failed = np.nonzero(residual != FF(0))[0]
            if len(failed):
                print(f"ERROR: {len(failed)} arithmetic gates unsatisfied "
                      f"(first gate index: {int(failed[0])})")
                ok = False

        if self.constant_targets:
            targets = np.array(list(self.constant_targets.keys()), dtype=np.int64)
            expected = to_ff_array(list(self.constant_targets.values()))
            failed = np.nonzero(w[targets] != expected)[0]
            if len(failed):
                print(f"ERROR: {len(failed)} constant targets hold the wrong value")
                ok = False

        if self.copy_constraints:
            lhs = np.array([x for x, _ in self.copy_constraints], dtype=np.int64)
            rhs = np.array([y for _, y in self.copy_constraints], dtype=np.int64)
            failed = np.nonzero(w[lhs] != w[rhs])[0]
            if len(failed):
                first = self.copy_constraints[int(failed[0])]
                print(f"ERROR: {len(failed)} copy constraints unsatisfied "
                      f"(first: targets {first[0]} and {first[1]})")
                ok = False

        return ok

    def prove(self, inputs: "CircuitInput") -> "CircuitOutput":
        """
        Generate a satisfying witness and return the circuit outputs.

        Raises:
            UnsatisfiedConstraintError: If the witness violates any constraint
        """
        witness = self.generate_witness(inputs)
        if not self.check_constraints(witness):
            raise UnsatisfiedConstraintError("witness does not satisfy the circuit constraints")
        return CircuitOutput([witness.get_target(t) for t in self.output_targets], witness)


class CircuitInput:
    """Concrete values for the circuit inputs, written in declaration order."""

    def __init__(self):
        self.elements: List[int] = []

    def write(self, var_type, value) -> None:
        self.elements.extend(var_type.elements_from_value(value))


class CircuitOutput:
    """Values of the circuit outputs, read back in declaration order."""

    def __init__(self, elements: List[int], witness: PartialWitness):
        self.elements = elements
        self.witness = witness
        self._cursor = 0

    def read(self, var_type):
        n = var_type.nb_elements()
        if self._cursor + n > len(self.elements):
            raise ValueError(f"cannot read {n} elements, only {len(self.elements) - self._cursor} left")
        chunk = self.elements[self._cursor:self._cursor + n]
        self._cursor += n
        return var_type.value_from_elements(chunk)
