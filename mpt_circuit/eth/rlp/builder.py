"""Decoding RLP-encoded MPT nodes inside a circuit.

The decoding itself runs off-circuit in DecodeHint. `decode_mpt_node` then
binds the hint's output to the encoded buffer with a randomized polynomial
identity test instead of expressing byte-level parsing as constraints:

    E(x) = sum_{j < len} encoded[j] * x^j
    C(x) = the same evaluation over the bytes of RLP(decoded items)

The decoded items are re-encoded symbolically (prefix selection by masked
blending, no data-dependent branches) and E(x) == C(x) is asserted for
NUM_LOOPS challenges drawn from a Poseidon2 transcript seeded by the caller.
Agreement at independent random points leaves a soundness error of roughly
(ENCODING_LEN / p)^NUM_LOOPS.

Items are restricted to the short-string regime (<= 55 bytes) and nested
lists are not verified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, List, NamedTuple, Sequence, Tuple

from ...frontend.builder import CircuitBuilder
from ...frontend.challenger import RecursiveChallenger
from ...frontend.hint import Hint, register_hint
from ...frontend.streams import OutputVariableStream, ValueStream, VariableStream
from ...frontend.vars import ArrayVariable, BoolVariable, ByteVariable, Variable
from .utils import (
    LONG_LIST_PREFIX,
    MAX_RLP_ITEM_SIZE,
    MAX_SHORT_LENGTH,
    NUM_LOOPS,
    SHORT_LIST_PREFIX,
    SHORT_STRING_PREFIX,
    check_seed_length,
    decode_padded_mpt_node,
)

MAX_LIST_PAYLOAD = 1 << 16
"""Reconstructed list payloads must stay below this (two length bytes)."""

DecodedNode = Tuple[ArrayVariable, ArrayVariable, Variable]


@dataclass(frozen=True)
class MPTNodeShape:
    """Compile-time shape of a decoded node."""
    list_len: int
    element_len: int = MAX_RLP_ITEM_SIZE

    def __post_init__(self):
        if self.list_len < 1:
            raise ValueError(f"list_len must be positive, got {self.list_len}")
        if not 0 < self.element_len <= MAX_SHORT_LENGTH:
            raise ValueError(
                f"element_len must be in [1, {MAX_SHORT_LENGTH}], got {self.element_len}"
            )

    def items_type(self):
        return ArrayVariable.of(ArrayVariable.of(ByteVariable, self.element_len), self.list_len)

    def lengths_type(self):
        return ArrayVariable.of(Variable, self.list_len)


BRANCH_NODE = MPTNodeShape(list_len=17)
EXTENSION_NODE = MPTNodeShape(list_len=2)
LEAF_NODE = EXTENSION_NODE


@register_hint
@dataclass(frozen=True)
class DecodeHint(Hint):
    """Decode a padded RLP buffer into `list_len` padded items.

    Input stream: encoded bytes (encoding_len), true length, finish flag.
    Output stream: items (list_len x element_len bytes), item lengths, total length.
    """

    encoding_len: int
    list_len: int
    element_len: int = MAX_RLP_ITEM_SIZE
    name: ClassVar[str] = "eth.rlp.decode_mpt_node"

    def hint(self, input_stream: ValueStream, output_stream: ValueStream) -> None:
        encoded = input_stream.read_value(ArrayVariable.of(ByteVariable, self.encoding_len))
        length = input_stream.read_value(Variable)
        finish = input_stream.read_value(BoolVariable)

        decoded = decode_padded_mpt_node(encoded, length, finish, self.list_len, self.element_len)

        shape = MPTNodeShape(self.list_len, self.element_len)
        output_stream.write_value(shape.items_type(), [item.data for item in decoded.data])
        output_stream.write_value(shape.lengths_type(), [item.length for item in decoded.data])
        output_stream.write_value(Variable, decoded.length)


def read_decoded_node(
    output_stream: OutputVariableStream, builder: CircuitBuilder, shape: MPTNodeShape
) -> DecodedNode:
    """Declare the (items, item lengths, total length) outputs of a decode hint."""
    decoded_list = output_stream.read(shape.items_type(), builder)
    decoded_element_lens = output_stream.read(shape.lengths_type(), builder)
    len_decoded_list = output_stream.read(Variable, builder)
    return decoded_list, decoded_element_lens, len_decoded_list


def _request_decode(
    builder: CircuitBuilder,
    encoded: ArrayVariable,
    length: Variable,
    finish: BoolVariable,
    shape: MPTNodeShape,
) -> DecodedNode:
    input_stream = VariableStream()
    input_stream.write(encoded)
    input_stream.write(length)
    input_stream.write(finish)

    hint = DecodeHint(len(encoded), shape.list_len, shape.element_len)
    output_stream = builder.hint(input_stream, hint)
    return read_decoded_node(output_stream, builder, shape)


def decode_element_as_list(
    builder: CircuitBuilder,
    encoded: ArrayVariable,
    length: Variable,
    finish: BoolVariable,
    shape: MPTNodeShape = BRANCH_NODE,
) -> DecodedNode:
    """Decode without binding constraints. The outputs are only as good as the hint."""
    return _request_decode(builder, encoded, length, finish, shape)


def derive_challenges(
    builder: CircuitBuilder, seed: Sequence[ByteVariable], num_challenges: int = NUM_LOOPS
) -> List[Variable]:
    """
    Draw transcript challenges from a fresh challenger seeded with `seed`.

    Raises:
        ValueError: If the seed carries fewer than MIN_SEED_BITS bits
    """
    check_seed_length(len(seed))

    challenger = RecursiveChallenger(builder)
    challenger.observe_bytes(seed)
    return challenger.get_n_challenges(num_challenges)


class ListHeaderParts(NamedTuple):
    """Selectors and length bytes of the list header for a payload length T."""
    is_short: BoolVariable
    is_one_length_byte: BoolVariable
    quotient: Variable
    remainder: Variable
    header_len: Variable


def list_header_parts(builder: CircuitBuilder, payload_len: Variable) -> ListHeaderParts:
    """
    Split a reconstructed payload length into its list-header parts.

    The header is 0xc0+T for T <= 55, 0xf8 T for T <= 255 and 0xf9 T/256 T%256
    otherwise. T < MAX_LIST_PAYLOAD is asserted.
    """
    builder.assert_true(builder.lt(payload_len, MAX_LIST_PAYLOAD))
    is_short = builder.lte(payload_len, MAX_SHORT_LENGTH)
    is_one_length_byte = builder.lte(payload_len, 0xff)
    quotient, remainder = builder.div_rem(payload_len, 256, quotient_bits=8)
    header_len = builder.select(is_short, 1, builder.select(is_one_length_byte, 2, 3))
    return ListHeaderParts(is_short, is_one_length_byte, quotient, remainder, header_len)


def verify_decoded_mpt_node(
    builder: CircuitBuilder,
    encoded: ArrayVariable,
    length: Variable,
    finish: BoolVariable,
    seed: Sequence[ByteVariable],
    decoded_list: ArrayVariable,
    decoded_element_lens: ArrayVariable,
    len_decoded_list: Variable,
) -> None:
    """Constrain (decoded_list, decoded_element_lens, len_decoded_list) to be the
    RLP decoding of encoded[:length].

    Nothing is enforced when `finish` is set.
    """
    challenges = derive_challenges(builder, seed)

    list_len = len(decoded_list)
    element_len = len(decoded_list[0])
    one = builder.one()
    not_finish = builder.not_(finish)

    # Bytes of the encoding that fall before `length`; index == length counts as done
    encoded_vals = builder.bytes_to_variables(encoded)
    within_encoding = [builder.not_(builder.lte(length, j)) for j in range(len(encoded))]

    # Per-item data shared by every loop
    item_vals: List[List[Variable]] = []
    within_item: List[List[BoolVariable]] = []
    has_prefix: List[BoolVariable] = []
    prefix_terms: List[Variable] = []
    encoded_item_lens: List[Variable] = []
    for j in range(list_len):
        item_len = decoded_element_lens[j]
        builder.assert_true(builder.lte(item_len, element_len))

        vals = builder.bytes_to_variables(decoded_list[j])
        within = [builder.not_(builder.lte(item_len, k)) for k in range(element_len)]
        # Padding past the item length must be zero
        for val, inside in zip(vals, within):
            builder.assert_zero(builder.mul(val, builder.not_(inside)))
        item_vals.append(vals)
        within_item.append(within)

        # Four cases:
        # - len = 0                      ===> (0x80, 1)
        # - len = 1 && item[0] < 0x80    ===> (item[0], 1), no prefix
        # - len = 1 && item[0] >= 0x80   ===> (0x81, 2)
        # - len <= 55                    ===> (0x80 + len, 1 + len)
        first_byte_small = builder.not_(decoded_list[j][0].bits[0])
        is_literal = builder.and_(builder.is_equal(item_len, one), first_byte_small)
        prefix = builder.not_(is_literal)
        has_prefix.append(prefix)
        prefix_terms.append(builder.mul(prefix, builder.add(item_len, SHORT_STRING_PREFIX)))
        encoded_item_lens.append(builder.add(prefix, item_len))

    payload_len = builder.add_many(encoded_item_lens)
    parts = list_header_parts(builder, payload_len)
    is_short, is_one_length_byte = parts.is_short, parts.is_one_length_byte
    short_header = builder.add(payload_len, SHORT_LIST_PREFIX)

    total_len = builder.add(parts.header_len, payload_len)
    builder.assert_zero(builder.mul(builder.sub(total_len, len_decoded_list), not_finish))
    builder.assert_zero(builder.mul(builder.sub(length, len_decoded_list), not_finish))

    for i in range(NUM_LOOPS):
        x = challenges[i]
        x_minus_one = builder.sub(x, one)

        # Encoding polynomial; the power accumulator drops to zero past `length`
        encoding_poly = builder.zero()
        pow_x = one
        for j in range(len(encoded)):
            pow_x = builder.mul(pow_x, within_encoding[j])
            encoding_poly = builder.mul_add(encoded_vals[j], pow_x, encoding_poly)
            pow_x = builder.mul(pow_x, x)

        # Claim polynomial over the re-encoded items
        claim_poly = builder.zero()
        pow_x = one
        for j in range(list_len):
            claim_poly = builder.mul_add(prefix_terms[j], pow_x, claim_poly)
            # Advance by x only if a prefix byte was emitted
            pow_x = builder.mul(pow_x, builder.mul_add(has_prefix[j], x_minus_one, one))

            for k in range(element_len):
                term = builder.mul(item_vals[j][k], within_item[j][k])
                claim_poly = builder.mul_add(term, pow_x, claim_poly)
                pow_x = builder.mul(pow_x, builder.mul_add(within_item[j][k], x_minus_one, one))

        x2 = builder.mul(x, x)
        x3 = builder.mul(x2, x)
        medium_header = builder.mul_add(payload_len, x, LONG_LIST_PREFIX + 1)
        long_header = builder.mul_add(
            parts.remainder, x2, builder.mul_add(parts.quotient, x, LONG_LIST_PREFIX + 2)
        )

        header = builder.select(
            is_short, short_header, builder.select(is_one_length_byte, medium_header, long_header)
        )
        shift = builder.select(is_short, x, builder.select(is_one_length_byte, x2, x3))

        claim_poly = builder.mul_add(claim_poly, shift, header)

        builder.assert_zero(builder.mul(builder.sub(encoding_poly, claim_poly), not_finish))


def decode_mpt_node(
    builder: CircuitBuilder,
    encoded: ArrayVariable,
    length: Variable,
    finish: BoolVariable,
    seed: Sequence[ByteVariable],
    shape: MPTNodeShape = BRANCH_NODE,
) -> DecodedNode:
    """
    Decode an RLP-encoded MPT node and prove the decoding correct.

    Args:
        builder: Circuit under construction
        encoded: Zero-padded encoding, ENCODING_LEN bytes
        length: True encoded length
        finish: Set when the proof path has terminated
        seed: At least MIN_SEED_BITS bits, committed before this call
        shape: Node shape (BRANCH_NODE, EXTENSION_NODE, ...)

    Returns:
        (decoded_list, decoded_element_lens, len_decoded_list)

    Raises:
        ValueError: If the seed is shorter than MIN_SEED_BITS bits
    """
    check_seed_length(len(seed))

    decoded_list, decoded_element_lens, len_decoded_list = _request_decode(
        builder, encoded, length, finish, shape
    )
    verify_decoded_mpt_node(
        builder, encoded, length, finish, seed,
        decoded_list, decoded_element_lens, len_decoded_list,
    )
    return decoded_list, decoded_element_lens, len_decoded_list
