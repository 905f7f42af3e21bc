"""Circuit builder.

CircuitBuilder records a static circuit: targets, arithmetic gates of the form
`out = k0*a*b + k1*c`, constant assignments, copy constraints, and witness
generators in declaration order. Every gadget is built from those pieces;
gadgets that need non-algebraic witness values (bit splits, inverses,
quotients) request them through hints and constrain the result.

Example:
    builder = CircuitBuilder()
    a = builder.read(Variable)
    b = builder.read(Variable)
    builder.write(builder.mul(a, b))
    circuit = builder.build()

    inputs = circuit.input()
    inputs.write(Variable, 6)
    inputs.write(Variable, 7)
    assert circuit.prove(inputs).read(Variable) == 42
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Set, Union

from ..backend.circuit import Circuit
from ..backend.witness import ArithmeticGate, ArithmeticGenerator, WitnessGenerator
from ..primitives.field import to_canonical
from .hint import Hint, HintGenerator
from .math_hints import DivRemHint, InverseOrZeroHint, SplitBitsHint
from .streams import OutputVariableStream, VariableStream
from .vars import BoolVariable, ByteVariable, CircuitVariable, Variable

# Comparison gadgets assume both operands are below 2^COMPARISON_BITS
COMPARISON_BITS = 32

Operand = Union[Variable, int]


class CircuitBuilder:
    """Declares variables, gadgets, hints and constraints of one circuit."""

    def __init__(self):
        self.num_targets = 0
        self.gates: List[ArithmeticGate] = []
        self.constant_targets: Dict[int, int] = {}
        self.copy_constraints: List[tuple] = []
        self.generators: List[WitnessGenerator] = []
        self.input_targets: List[int] = []
        self.output_targets: List[int] = []
        self._constants: Dict[int, Variable] = {}
        # Targets already range-checked to COMPARISON_BITS
        self._comparable_targets: Set[int] = set()

    # --- Targets and I/O ---

    def add_virtual_targets(self, n: int) -> List[int]:
        start = self.num_targets
        self.num_targets += n
        return list(range(start, start + n))

    def init(self, var_type):
        """Declare a fresh variable of `var_type`, with its type constraints."""
        var = var_type.from_targets(self.add_virtual_targets(var_type.nb_elements()))
        var_type.assert_is_valid(self, var)
        return var

    def read(self, var_type):
        """Declare a circuit input of `var_type`."""
        var = self.init(var_type)
        self.input_targets.extend(var.targets())
        return var

    def write(self, var: CircuitVariable) -> None:
        """Expose `var` as a circuit output."""
        self.output_targets.extend(var.targets())

    # --- Constants ---

    def constant(self, value: int) -> Variable:
        value = to_canonical(value)
        var = self._constants.get(value)
        if var is None:
            var = Variable(self.add_virtual_targets(1)[0])
            self.constant_targets[var.target] = value
            self._constants[value] = var
        return var

    def zero(self) -> Variable:
        return self.constant(0)

    def one(self) -> Variable:
        return self.constant(1)

    def constant_bool(self, value: bool) -> BoolVariable:
        return BoolVariable(self.constant(1 if value else 0).target)

    def constant_byte(self, value: int) -> ByteVariable:
        bits = ByteVariable.elements_from_value(value)
        return ByteVariable([self.constant_bool(b) for b in bits])

    def _var(self, x: Operand) -> Variable:
        return x if isinstance(x, Variable) else self.constant(x)

    # --- Arithmetic ---

    def arithmetic(self, k0: int, a: Operand, b: Operand, k1: int, c: Operand) -> Variable:
        """Return k0*a*b + k1*c as a new variable (one gate)."""
        a, b, c = self._var(a), self._var(b), self._var(c)
        out = Variable(self.add_virtual_targets(1)[0])
        gate = ArithmeticGate(a.target, b.target, c.target, out.target,
                              to_canonical(k0), to_canonical(k1))
        self.gates.append(gate)
        self.generators.append(ArithmeticGenerator(gate))
        return out

    def add(self, a: Operand, b: Operand) -> Variable:
        return self.arithmetic(1, a, self.one(), 1, b)

    def sub(self, a: Operand, b: Operand) -> Variable:
        return self.arithmetic(1, a, self.one(), -1, b)

    def mul(self, a: Operand, b: Operand) -> Variable:
        return self.arithmetic(1, a, b, 0, self.zero())

    def mul_add(self, a: Operand, b: Operand, c: Operand) -> Variable:
        """a*b + c"""
        return self.arithmetic(1, a, b, 1, c)

    def scale(self, a: Operand, k: int) -> Variable:
        return self.arithmetic(k, a, self.one(), 0, self.zero())

    def neg(self, a: Operand) -> Variable:
        return self.scale(a, -1)

    def add_many(self, terms: Sequence[Operand]) -> Variable:
        acc = self.zero()
        for t in terms:
            acc = self.add(acc, t)
        return acc

    # --- Booleans ---

    def assert_bool(self, b: Variable) -> None:
        """b*b - b == 0"""
        self._assert_gate(1, b, b, -1, b)

    def not_(self, b: BoolVariable) -> BoolVariable:
        return BoolVariable(self.sub(self.one(), b).target)

    def and_(self, a: BoolVariable, b: BoolVariable) -> BoolVariable:
        return BoolVariable(self.mul(a, b).target)

    def or_(self, a: BoolVariable, b: BoolVariable) -> BoolVariable:
        # a + b - a*b
        ab = self.arithmetic(-1, a, b, 1, a)
        return BoolVariable(self.add(ab, b).target)

    def select(self, cond: BoolVariable, a: Operand, b: Operand) -> Variable:
        """cond ? a : b, computed as b + cond*(a - b)."""
        diff = self.sub(a, b)
        return self.mul_add(cond, diff, b)

    # --- Bits and bytes ---

    def le_sum(self, bits: Sequence[BoolVariable]) -> Variable:
        """Sum of bits[i] * 2^i."""
        acc = self.zero()
        for i, bit in enumerate(bits):
            acc = self.arithmetic(1 << i, bit, self.one(), 1, acc)
        return acc

    def split_le_bits(self, value: Variable, num_bits: int) -> List[BoolVariable]:
        """Little-endian bits of `value`; fails to satisfy if value >= 2^num_bits."""
        if not 0 < num_bits < 64:
            raise ValueError(f"num_bits must be in [1, 63], got {num_bits}")
        stream = VariableStream()
        stream.write(value)
        output = self.hint(stream, SplitBitsHint(num_bits))
        bits = [output.read(BoolVariable, self) for _ in range(num_bits)]
        self.assert_is_equal(self.le_sum(bits), value)
        return bits

    def range_check(self, value: Variable, num_bits: int) -> None:
        self.split_le_bits(value, num_bits)

    def byte_to_variable(self, byte: ByteVariable) -> Variable:
        return self.le_sum(list(reversed(byte.bits)))

    def bytes_to_variables(self, data: Sequence[ByteVariable]) -> List[Variable]:
        return [self.byte_to_variable(b) for b in data]

    # --- Comparisons ---

    def is_zero(self, value: Operand) -> BoolVariable:
        """1 if value == 0 else 0, via an inverse witness."""
        value = self._var(value)
        stream = VariableStream()
        stream.write(value)
        inv = self.hint(stream, InverseOrZeroHint()).read(Variable, self)
        # out = 1 - value*inv, and value*out == 0
        out = self.arithmetic(-1, value, inv, 1, self.one())
        self._assert_gate(1, value, out, 0, self.zero())
        return BoolVariable(out.target)

    def is_equal(self, a: Operand, b: Operand) -> BoolVariable:
        return self.is_zero(self.sub(a, b))

    def _comparable(self, x: Operand) -> Variable:
        """Return x as a variable constrained below 2^COMPARISON_BITS."""
        x = self._var(x)
        value = self.constant_targets.get(x.target)
        if value is not None:
            if value >> COMPARISON_BITS:
                raise ValueError(f"constant {value} does not fit in {COMPARISON_BITS} bits")
        elif x.target not in self._comparable_targets:
            self.range_check(x, COMPARISON_BITS)
            self._comparable_targets.add(x.target)
        return x

    def lt(self, a: Operand, b: Operand) -> BoolVariable:
        """a < b. Both operands are range-checked below 2^COMPARISON_BITS."""
        a, b = self._comparable(a), self._comparable(b)
        # a - b + 2^k has bit k set exactly when a >= b
        shifted = self.arithmetic(1, a, self.one(), 1, self.sub(1 << COMPARISON_BITS, b))
        bits = self.split_le_bits(shifted, COMPARISON_BITS + 1)
        return self.not_(bits[COMPARISON_BITS])

    def lte(self, a: Operand, b: Operand) -> BoolVariable:
        """a <= b. Both operands are range-checked below 2^COMPARISON_BITS."""
        return self.not_(self.lt(b, a))

    def div_rem(self, value: Variable, divisor: int, quotient_bits: int = COMPARISON_BITS):
        """(value // divisor, value % divisor) for a constant divisor.

        Constrained by q*divisor + r == value, r < divisor, q < 2^quotient_bits.
        """
        if not 0 < divisor < 1 << COMPARISON_BITS:
            raise ValueError(f"divisor out of range: {divisor}")
        stream = VariableStream()
        stream.write(value)
        output = self.hint(stream, DivRemHint(divisor))
        q = output.read(Variable, self)
        r = output.read(Variable, self)
        self.range_check(q, quotient_bits)
        self.assert_true(self.lt(r, divisor))
        self.assert_is_equal(self.arithmetic(divisor, q, self.one(), 1, r), value)
        return q, r

    # --- Assertions ---

    def _assert_gate(self, k0: int, a: Operand, b: Operand, k1: int, c: Operand) -> None:
        """Constrain k0*a*b + k1*c == 0 without creating a new variable."""
        a, b, c = self._var(a), self._var(b), self._var(c)
        self.gates.append(ArithmeticGate(a.target, b.target, c.target, self.zero().target,
                                         to_canonical(k0), to_canonical(k1)))

    def assert_is_equal(self, a: CircuitVariable, b: CircuitVariable) -> None:
        ta, tb = a.targets(), b.targets()
        if len(ta) != len(tb):
            raise ValueError(f"cannot equate variables of {len(ta)} and {len(tb)} elements")
        self.copy_constraints.extend(zip(ta, tb))

    def assert_zero(self, value: Operand) -> None:
        self.assert_is_equal(self._var(value), self.zero())

    def assert_true(self, b: BoolVariable) -> None:
        self.assert_is_equal(b, self.one())

    # --- Hints ---

    def hint(self, input_stream: VariableStream, hint: Hint) -> OutputVariableStream:
        """Schedule `hint` over `input_stream`; read its outputs from the returned handle."""
        generator = HintGenerator(hint, input_stream.targets)
        self.generators.append(generator)
        return OutputVariableStream(generator)

    # --- Build ---

    def build(self) -> Circuit:
        return Circuit(
            num_targets=self.num_targets,
            gates=list(self.gates),
            constant_targets=dict(self.constant_targets),
            copy_constraints=list(self.copy_constraints),
            generators=list(self.generators),
            input_targets=list(self.input_targets),
            output_targets=list(self.output_targets),
        )
