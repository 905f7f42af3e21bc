"""
Poseidon2 permutation for the Goldilocks field.

Native (witness-side) implementation over canonical ints. The in-circuit
gadget in frontend/hash/poseidon2.py follows the same round structure and
must agree with this module bit for bit.
"""

from typing import List

from .constants import ROUNDS_F, ROUNDS_P, internal_diag, round_constants, _check_width
from .field import GOLDILOCKS_PRIME


def _pow7(x: int) -> int:
    """
    Compute x^7 in the Goldilocks field.

    Uses the decomposition x^7 = x^3 * x^4.
    """
    x2 = (x * x) % GOLDILOCKS_PRIME
    x3 = (x * x2) % GOLDILOCKS_PRIME
    x4 = (x2 * x2) % GOLDILOCKS_PRIME
    return (x3 * x4) % GOLDILOCKS_PRIME


def _matmul_m4(x: List[int]) -> List[int]:
    """Apply the 4x4 matrix of the external linear layer."""
    t0 = (x[0] + x[1]) % GOLDILOCKS_PRIME
    t1 = (x[2] + x[3]) % GOLDILOCKS_PRIME
    t2 = (x[1] + x[1] + t1) % GOLDILOCKS_PRIME
    t3 = (x[3] + x[3] + t0) % GOLDILOCKS_PRIME
    t1_2 = (t1 + t1) % GOLDILOCKS_PRIME
    t0_2 = (t0 + t0) % GOLDILOCKS_PRIME
    t4 = (t1_2 + t1_2 + t3) % GOLDILOCKS_PRIME
    t5 = (t0_2 + t0_2 + t2) % GOLDILOCKS_PRIME
    t6 = (t3 + t5) % GOLDILOCKS_PRIME
    t7 = (t2 + t4) % GOLDILOCKS_PRIME

    return [t6, t5, t7, t4]


def _matmul_external(state: List[int], width: int) -> List[int]:
    """
    Apply the external matrix multiplication.

    For width == 4, this is just matmul_m4.
    For larger widths, applies matmul_m4 to each 4-element block,
    then adds the column sums.
    """
    result = list(state)

    for i in range(0, width, 4):
        result[i:i + 4] = _matmul_m4(result[i:i + 4])

    if width > 4:
        stored = [0, 0, 0, 0]
        for i in range(0, width, 4):
            for lane in range(4):
                stored[lane] = (stored[lane] + result[i + lane]) % GOLDILOCKS_PRIME

        for i in range(width):
            result[i] = (result[i] + stored[i % 4]) % GOLDILOCKS_PRIME

    return result


def poseidon2_hash(input_data: List[int], width: int = 12) -> List[int]:
    """
    Compute the full Poseidon2 permutation.

    Args:
        input_data: List of field elements (as integers) of length `width`
        width: Sponge width (4, 8, 12, or 16)

    Returns:
        List of `width` field elements after the permutation
    """
    _check_width(width)
    if len(input_data) != width:
        raise ValueError(f"input_data must have {width} elements, got {len(input_data)}")

    C = round_constants(width)
    D = internal_diag(width)
    half_full_rounds = ROUNDS_F // 2

    state = [x % GOLDILOCKS_PRIME for x in input_data]

    state = _matmul_external(state, width)

    for r in range(half_full_rounds):
        rc = C[r * width:(r + 1) * width]
        state = [_pow7((state[i] + rc[i]) % GOLDILOCKS_PRIME) for i in range(width)]
        state = _matmul_external(state, width)

    for r in range(ROUNDS_P):
        state[0] = _pow7((state[0] + C[half_full_rounds * width + r]) % GOLDILOCKS_PRIME)
        sum_val = sum(state) % GOLDILOCKS_PRIME
        for i in range(width):
            state[i] = (state[i] * D[i] + sum_val) % GOLDILOCKS_PRIME

    for r in range(half_full_rounds):
        rc_offset = half_full_rounds * width + ROUNDS_P + r * width
        rc = C[rc_offset:rc_offset + width]
        state = [_pow7((state[i] + rc[i]) % GOLDILOCKS_PRIME) for i in range(width)]
        state = _matmul_external(state, width)

    return state
