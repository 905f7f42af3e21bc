"""Tests for in-circuit MPT node decoding and its binding constraints."""

from dataclasses import dataclass
from typing import ClassVar, Tuple

import pytest
import rlp

from mpt_circuit.backend import UnsatisfiedConstraintError
from mpt_circuit.eth.rlp import (
    BRANCH_NODE,
    EXTENSION_NODE,
    MAX_LIST_PAYLOAD,
    DecodeHint,
    MPTNodeShape,
    list_header_parts,
    read_decoded_node,
    verify_decoded_mpt_node,
)
from mpt_circuit.eth.rlp.utils import decode_padded_mpt_node
from mpt_circuit.frontend import (
    ArrayVariable,
    BoolVariable,
    ByteVariable,
    CircuitBuilder,
    ValueStream,
    Variable,
    VariableStream,
    register_hint,
)
from mpt_circuit.primitives import GOLDILOCKS_PRIME

from .conftest import BRANCH_NODE_RLP, DEFAULT_SEED, EXTENSION_NODE_RLP, pad

CHILD_HASH = bytes.fromhex("188d1100731419827900267bf4e6ea6d428fa5a67656e021485d1f6c89e69be6")


def _padded(item: bytes, size: int = 32) -> list:
    return list(item) + [0] * (size - len(item))


def assert_matches_reference(encoding: bytes, decoded, shape: MPTNodeShape) -> None:
    """Decoded outputs equal pyrlp's decoding, zero-padded to the node shape."""
    items, lens, total = decoded
    expected = rlp.decode(encoding)
    expected += [b""] * (shape.list_len - len(expected))

    assert [bytes(item[:n]) for item, n in zip(items, lens)] == expected
    assert items == [_padded(e, shape.element_len) for e in expected]
    assert total == len(encoding)


def test_branch_node(build_decode_circuit) -> None:
    """A 532-byte branch node in a 600-byte buffer decodes under the 0xf9 header."""
    circuit = build_decode_circuit(600, BRANCH_NODE)
    decoded = circuit.decode(BRANCH_NODE_RLP)

    assert_matches_reference(BRANCH_NODE_RLP, decoded, BRANCH_NODE)
    items, lens, total = decoded
    assert total == 532
    assert lens == [32] * 16 + [0]
    assert bytes(items[3]) == CHILD_HASH


def test_extension_node(build_decode_circuit) -> None:
    """An extension node decodes to its path and child hash."""
    encoding = rlp.encode([b"\x00\x6f", CHILD_HASH])
    assert encoding == EXTENSION_NODE_RLP

    circuit = build_decode_circuit(64, EXTENSION_NODE)
    decoded = circuit.decode(encoding)

    assert_matches_reference(encoding, decoded, EXTENSION_NODE)
    assert decoded[1] == [2, 32]


def test_one_length_byte_list_header(build_decode_circuit) -> None:
    """A 56-byte payload switches the header to 0xf8 0x38."""
    leaf_value = bytes(range(0x90, 0x90 + 22))
    encoding = rlp.encode([CHILD_HASH, leaf_value])
    assert encoding[:2] == b"\xf8\x38"

    circuit = build_decode_circuit(64, EXTENSION_NODE)
    decoded = circuit.decode(encoding)

    assert_matches_reference(encoding, decoded, EXTENSION_NODE)
    assert decoded[2] == 58


@pytest.mark.parametrize("last_len, header", [(30, b"\xf8\xff"), (31, b"\xf9\x01\x00")])
def test_header_switch_at_256(build_decode_circuit, last_len: int, header: bytes) -> None:
    """Payloads of 255 and 256 bytes take the 0xf8 and 0xf9 headers respectively."""
    shape = MPTNodeShape(list_len=5, element_len=55)
    items = [bytes([0xa0 + i]) * 55 for i in range(4)] + [b"\xee" * last_len]
    encoding = rlp.encode(items)
    assert encoding.startswith(header)

    circuit = build_decode_circuit(260, shape)
    assert_matches_reference(encoding, circuit.decode(encoding), shape)


def test_branch_of_empty_items(build_decode_circuit) -> None:
    """Seventeen empty items encode as 0xd1 followed by seventeen 0x80 bytes."""
    encoding = rlp.encode([b""] * 17)
    assert encoding == b"\xd1" + b"\x80" * 17

    circuit = build_decode_circuit(24, BRANCH_NODE)
    decoded = circuit.decode(encoding)

    assert_matches_reference(encoding, decoded, BRANCH_NODE)
    assert decoded[1] == [0] * 17


@pytest.mark.parametrize("first", [b"\x00", b"\x7f", b"\x80", b"\xff"])
def test_single_byte_items(build_decode_circuit, first: bytes) -> None:
    """Bytes below 0x80 are their own encoding; 0x80 and above take a 0x81 prefix."""
    encoding = rlp.encode([first, CHILD_HASH])
    has_prefix = first[0] >= 0x80
    assert len(encoding) == 1 + (2 if has_prefix else 1) + 33

    circuit = build_decode_circuit(48, EXTENSION_NODE)
    decoded = circuit.decode(encoding)

    assert_matches_reference(encoding, decoded, EXTENSION_NODE)
    assert decoded[1] == [1, 32]


@pytest.mark.parametrize("item_len", [0, 1, 2, 55])
def test_item_length_boundaries(build_decode_circuit, item_len: int) -> None:
    """Items of 0, 1, 2 and 55 bytes decode exactly as pyrlp decodes them."""
    shape = MPTNodeShape(list_len=2, element_len=55)
    encoding = rlp.encode([bytes([0x81 + i % 64 for i in range(item_len)]), b"\x20\x01"])

    circuit = build_decode_circuit(64, shape)
    assert_matches_reference(encoding, circuit.decode(encoding), shape)


def test_item_longer_than_short_string_regime(build_decode_circuit) -> None:
    """A 56-byte item needs a long-string prefix and is rejected by the decoder."""
    shape = MPTNodeShape(list_len=2, element_len=55)
    encoding = rlp.encode([bytes(range(1, 57)), b"\x20\x01"])

    circuit = build_decode_circuit(64, shape)
    with pytest.raises(ValueError):
        circuit.prove(encoding)


def test_decoding_is_deterministic(build_decode_circuit) -> None:
    """Repeated proofs over the same input give identical outputs."""
    circuit = build_decode_circuit(40, EXTENSION_NODE)
    first = circuit.prove(EXTENSION_NODE_RLP).elements
    second = circuit.prove(EXTENSION_NODE_RLP).elements
    assert first == second


@pytest.mark.parametrize("verified", [True, False])
def test_finish_ignores_the_buffer(build_decode_circuit, verified: bool) -> None:
    """With finish set, any buffer yields an empty node and total length 0."""
    circuit = build_decode_circuit(40, EXTENSION_NODE, verified=verified)
    items, lens, total = circuit.decode(b"\xff" * 40, finish=True, length=7)

    assert total == 0
    assert lens == [0, 0]
    assert items == [[0] * 32, [0] * 32]


def test_unverified_decode_accepts_fewer_items(build_decode_circuit) -> None:
    """decode_element_as_list trusts the hint, which pads missing items."""
    encoding = rlp.encode([b"\x12\x34"])
    circuit = build_decode_circuit(16, EXTENSION_NODE, verified=False)
    decoded = circuit.decode(encoding)

    assert_matches_reference(encoding, decoded, EXTENSION_NODE)
    assert decoded[1] == [2, 0]


def test_verified_decode_requires_full_item_count(build_decode_circuit) -> None:
    """A missing item re-encodes as 0x80, so the claimed node no longer matches."""
    encoding = rlp.encode([b"\x12\x34"])
    circuit = build_decode_circuit(16, EXTENSION_NODE)
    with pytest.raises(UnsatisfiedConstraintError):
        circuit.prove(encoding)


def test_claimed_length_beyond_node(build_decode_circuit) -> None:
    """A length that covers trailing padding cannot be decoded."""
    circuit = build_decode_circuit(40, EXTENSION_NODE)
    with pytest.raises(ValueError):
        circuit.prove(EXTENSION_NODE_RLP, length=len(EXTENSION_NODE_RLP) + 1)


def test_short_seed_rejected_at_build_time(build_decode_circuit) -> None:
    """Fewer than 120 seed bits is a circuit definition error."""
    with pytest.raises(ValueError, match="at least 120"):
        build_decode_circuit(40, EXTENSION_NODE, seed_len=14)


# --- List header ---


def _prove_list_header(payload_len: int):
    builder = CircuitBuilder()
    parts = list_header_parts(builder, builder.read(Variable))
    builder.write(parts.header_len)
    builder.write(parts.is_short)
    builder.write(parts.is_one_length_byte)
    builder.write(parts.quotient)
    builder.write(parts.remainder)
    circuit = builder.build()

    inputs = circuit.input()
    inputs.write(Variable, payload_len)
    output = circuit.prove(inputs)
    return (
        output.read(Variable),
        output.read(BoolVariable),
        output.read(BoolVariable),
        output.read(Variable),
        output.read(Variable),
    )


@pytest.mark.parametrize("payload_len, header_len", [
    (0, 1), (55, 1), (56, 2), (255, 2), (256, 3), (529, 3), (MAX_LIST_PAYLOAD - 1, 3),
])
def test_list_header_parts(payload_len: int, header_len: int) -> None:
    """Header length and selectors follow the 55 / 255 boundaries."""
    got_len, is_short, is_one_byte, quotient, remainder = _prove_list_header(payload_len)
    assert got_len == header_len
    assert is_short == (payload_len <= 55)
    assert is_one_byte == (payload_len <= 255)
    assert (quotient, remainder) == divmod(payload_len, 256)


@pytest.mark.parametrize("payload_len", [MAX_LIST_PAYLOAD, MAX_LIST_PAYLOAD + 1, 2**32 - 1])
def test_list_payload_bound(payload_len: int) -> None:
    """A reconstructed payload of 65536 bytes or more is unsatisfiable."""
    with pytest.raises(UnsatisfiedConstraintError):
        _prove_list_header(payload_len)


# --- Dishonest hints ---


def _verify_with_hint(hint: DecodeHint, encoding: bytes, seed: bytes = DEFAULT_SEED):
    """Check `hint`'s output for `encoding` with verify_decoded_mpt_node and prove."""
    shape = MPTNodeShape(hint.list_len, hint.element_len)
    builder = CircuitBuilder()
    encoded = builder.read(ArrayVariable.of(ByteVariable, hint.encoding_len))
    length = builder.read(Variable)
    finish = builder.read(BoolVariable)
    seed_vars = builder.read(ArrayVariable.of(ByteVariable, len(seed)))

    stream = VariableStream()
    stream.write(encoded)
    stream.write(length)
    stream.write(finish)
    decoded = read_decoded_node(builder.hint(stream, hint), builder, shape)
    verify_decoded_mpt_node(builder, encoded, length, finish, seed_vars, *decoded)
    builder.write(decoded[1])
    circuit = builder.build()

    inputs = circuit.input()
    inputs.write(ArrayVariable.of(ByteVariable, hint.encoding_len), pad(encoding, hint.encoding_len))
    inputs.write(Variable, len(encoding))
    inputs.write(BoolVariable, False)
    inputs.write(ArrayVariable.of(ByteVariable, len(seed)), list(seed))
    return circuit.prove(inputs).read(shape.lengths_type())


@register_hint
@dataclass(frozen=True)
class TamperedDecodeHint(DecodeHint):
    """Decodes honestly, then corrupts one part of the result."""

    mode: str = "byte"
    name: ClassVar[str] = "test.tampered_decode"

    def hint(self, input_stream: ValueStream, output_stream: ValueStream) -> None:
        encoded = input_stream.read_value(ArrayVariable.of(ByteVariable, self.encoding_len))
        length = input_stream.read_value(Variable)
        finish = input_stream.read_value(BoolVariable)
        node = decode_padded_mpt_node(encoded, length, finish, self.list_len, self.element_len)

        if self.mode == "byte":
            node.data[1].data[5] ^= 0x01
        elif self.mode == "item_length":
            node.data[1].length -= 1
            node.data[1].data[31] = 0
        elif self.mode == "padding":
            node.data[0].data[10] = 0x42
        elif self.mode == "total":
            node.length += 1
        elif self.mode == "swap":
            node.data[0], node.data[1] = node.data[1], node.data[0]
        else:
            raise ValueError(f"unknown tamper mode {self.mode!r}")

        shape = MPTNodeShape(self.list_len, self.element_len)
        output_stream.write_value(shape.items_type(), [item.data for item in node.data])
        output_stream.write_value(shape.lengths_type(), [item.length for item in node.data])
        output_stream.write_value(Variable, node.length)


@register_hint
@dataclass(frozen=True)
class FixedDecodeHint(DecodeHint):
    """Ignores the buffer and returns a fixed decoding."""

    items: Tuple[Tuple[int, ...], ...] = ()
    lengths: Tuple[int, ...] = ()
    total: int = 0
    name: ClassVar[str] = "test.fixed_decode"

    def hint(self, input_stream: ValueStream, output_stream: ValueStream) -> None:
        input_stream.read_exact(input_stream.remaining())
        shape = MPTNodeShape(self.list_len, self.element_len)
        output_stream.write_value(shape.items_type(), [list(item) for item in self.items])
        output_stream.write_value(shape.lengths_type(), list(self.lengths))
        output_stream.write_value(Variable, self.total)


@pytest.mark.parametrize("mode", ["byte", "item_length", "padding", "total", "swap"])
@pytest.mark.parametrize("seed", [DEFAULT_SEED, b"\x5a" * 15, bytes(range(200, 232))])
def test_tampered_decoding_is_rejected(mode: str, seed: bytes) -> None:
    """Any change to an honest decoding leaves the circuit unsatisfied."""
    hint = TamperedDecodeHint(40, EXTENSION_NODE.list_len, EXTENSION_NODE.element_len, mode)
    with pytest.raises(UnsatisfiedConstraintError):
        _verify_with_hint(hint, EXTENSION_NODE_RLP, seed)


def test_fixed_hint_reproduces_honest_decoding() -> None:
    """An honest decoding supplied by a different hint passes verification."""
    encoding = rlp.encode([b"\x7f", b"\xaa\xbb"])
    hint = FixedDecodeHint(
        8, 2, 32,
        items=(tuple(_padded(b"\x7f")), tuple(_padded(b"\xaa\xbb"))),
        lengths=(1, 2),
        total=len(encoding),
    )
    assert _verify_with_hint(hint, encoding) == [1, 2]


@pytest.mark.parametrize("seed", [DEFAULT_SEED, b"\x5a" * 15])
def test_field_negative_item_length_is_rejected(seed: bytes) -> None:
    """An item length of p - 1 cannot masquerade as an empty item with prefix 0x7f.

    The buffer c4 7f 83 aa bb is malformed (0x83 claims three bytes, two
    follow), yet lengths [p - 1, 3] re-encode to the same bytes if the
    comparison gadgets accept p - 1 as small.
    """
    encoding = bytes.fromhex("c47f83aabb")
    hint = FixedDecodeHint(
        8, 2, 32,
        items=(tuple([0] * 32), tuple(_padded(b"\xaa\xbb"))),
        lengths=(GOLDILOCKS_PRIME - 1, 3),
        total=len(encoding),
    )
    with pytest.raises(UnsatisfiedConstraintError):
        _verify_with_hint(hint, encoding, seed)
