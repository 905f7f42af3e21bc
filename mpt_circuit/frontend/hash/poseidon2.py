"""
Poseidon2 permutation as circuit constraints.

Same round structure and constants as primitives/poseidon2.py, expressed with
CircuitBuilder arithmetic so the output is constrained rather than hinted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from ...primitives.constants import ROUNDS_F, ROUNDS_P, internal_diag, round_constants
from ..vars import Variable

if TYPE_CHECKING:
    from ..builder import CircuitBuilder


def _pow7(builder: "CircuitBuilder", x: Variable) -> Variable:
    """x^7 = x^3 * x^4"""
    x2 = builder.mul(x, x)
    x3 = builder.mul(x, x2)
    x4 = builder.mul(x2, x2)
    return builder.mul(x3, x4)


def _matmul_m4(builder: "CircuitBuilder", x: List[Variable]) -> List[Variable]:
    t0 = builder.add(x[0], x[1])
    t1 = builder.add(x[2], x[3])
    t2 = builder.arithmetic(2, x[1], builder.one(), 1, t1)  # 2*x1 + t1
    t3 = builder.arithmetic(2, x[3], builder.one(), 1, t0)  # 2*x3 + t0
    t4 = builder.arithmetic(4, t1, builder.one(), 1, t3)    # 4*t1 + t3
    t5 = builder.arithmetic(4, t0, builder.one(), 1, t2)    # 4*t0 + t2
    t6 = builder.add(t3, t5)
    t7 = builder.add(t2, t4)
    return [t6, t5, t7, t4]


def _matmul_external(builder: "CircuitBuilder", state: List[Variable], width: int) -> List[Variable]:
    result = list(state)
    for i in range(0, width, 4):
        result[i:i + 4] = _matmul_m4(builder, result[i:i + 4])

    if width > 4:
        stored = [builder.add_many(result[lane::4]) for lane in range(4)]
        result = [builder.add(result[i], stored[i % 4]) for i in range(width)]

    return result


def poseidon2_permutation(builder: "CircuitBuilder", state: List[Variable]) -> List[Variable]:
    """Apply the Poseidon2 permutation to `state` (len 4, 8, 12 or 16)."""
    width = len(state)
    C = round_constants(width)
    D = internal_diag(width)
    half_full_rounds = ROUNDS_F // 2

    state = _matmul_external(builder, list(state), width)

    for r in range(half_full_rounds):
        rc = C[r * width:(r + 1) * width]
        state = [_pow7(builder, builder.add(state[i], rc[i])) for i in range(width)]
        state = _matmul_external(builder, state, width)

    for r in range(ROUNDS_P):
        state[0] = _pow7(builder, builder.add(state[0], C[half_full_rounds * width + r]))
        sum_val = builder.add_many(state)
        # x[i] <- x[i] * D[i] + sum
        state = [builder.arithmetic(D[i], state[i], builder.one(), 1, sum_val) for i in range(width)]

    for r in range(half_full_rounds):
        rc_offset = half_full_rounds * width + ROUNDS_P + r * width
        rc = C[rc_offset:rc_offset + width]
        state = [_pow7(builder, builder.add(state[i], rc[i])) for i in range(width)]
        state = _matmul_external(builder, state, width)

    return state
