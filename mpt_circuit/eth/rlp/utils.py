"""RLP reference codec, the padded MPT node decoder and native challenges.

Everything here is plain Python over bytes. `decode_padded_mpt_node` is the
body of the decode hint; the encoders are the reference for the prefix rules
that the verified decoder re-derives in-circuit. `seed_challenges` computes,
off-circuit, the challenge points the verified decoder will draw from a seed.

RLP prefixes:
    [0x00, 0x7f]  single byte, encodes itself
    [0x80, 0xb7]  string of 0-55 bytes, length = prefix - 0x80
    [0xb8, 0xbf]  long string, (prefix - 0xb7) big-endian length bytes follow
    [0xc0, 0xf7]  list with 0-55 payload bytes, length = prefix - 0xc0
    [0xf8, 0xff]  long list, (prefix - 0xf7) big-endian length bytes follow
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple, Union

from ...primitives.field import pack_bytes
from ...primitives.transcript import Transcript

MAX_RLP_ITEM_SIZE = 32
"""Default padded size of a decoded MPT node item (a 32-byte hash)."""

MAX_SHORT_LENGTH = 55
"""Longest payload encodable with a single-byte prefix."""

SHORT_STRING_PREFIX = 0x80
LONG_STRING_PREFIX = 0xb7
SHORT_LIST_PREFIX = 0xc0
LONG_LIST_PREFIX = 0xf7

MIN_SEED_BITS = 120
"""Minimum entropy, in bits, of the seed fed to the transcript."""

NUM_LOOPS = 3
"""Independent challenge points for the identity test."""

RLPItem = Union[bytes, list]


# --- Encoding ---


def _be_length(n: int) -> bytes:
    return n.to_bytes((n.bit_length() + 7) // 8, "big")


def rlp_encode_item(data: bytes) -> bytes:
    """Encode a byte string."""
    data = bytes(data)
    if len(data) == 1 and data[0] < SHORT_STRING_PREFIX:
        return data
    if len(data) <= MAX_SHORT_LENGTH:
        return bytes([SHORT_STRING_PREFIX + len(data)]) + data
    length = _be_length(len(data))
    return bytes([LONG_STRING_PREFIX + len(length)]) + length + data


def rlp_list_header(payload_len: int) -> bytes:
    """Prefix of a list whose items encode to `payload_len` bytes."""
    if payload_len < 0:
        raise ValueError(f"payload length must be non-negative, got {payload_len}")
    if payload_len <= MAX_SHORT_LENGTH:
        return bytes([SHORT_LIST_PREFIX + payload_len])
    length = _be_length(payload_len)
    return bytes([LONG_LIST_PREFIX + len(length)]) + length


def rlp_encode(item: RLPItem) -> bytes:
    """Encode a byte string or a (nested) list of them."""
    if isinstance(item, (bytes, bytearray)):
        return rlp_encode_item(item)
    payload = b"".join(rlp_encode(x) for x in item)
    return rlp_list_header(len(payload)) + payload


def rlp_encode_list(items: Sequence[bytes]) -> bytes:
    """Encode a flat list of byte strings."""
    return rlp_encode([bytes(x) for x in items])


# --- Decoding ---


def _decode_length(data: bytes, offset: int, short_base: int, long_base: int) -> Tuple[int, int]:
    """Return (payload_offset, payload_len) for the prefix at `offset`."""
    prefix = data[offset]
    if prefix <= long_base:
        return offset + 1, prefix - short_base

    len_of_len = prefix - long_base
    start = offset + 1
    if start + len_of_len > len(data):
        raise ValueError("RLP length bytes run past the end of the input")
    length_bytes = data[start:start + len_of_len]
    if length_bytes[0] == 0:
        raise ValueError("non-canonical RLP: length has leading zero bytes")
    payload_len = int.from_bytes(length_bytes, "big")
    if payload_len <= MAX_SHORT_LENGTH:
        raise ValueError("non-canonical RLP: long form used for a short payload")
    return start + len_of_len, payload_len


def _decode_at(data: bytes, offset: int) -> Tuple[RLPItem, int]:
    """Decode one item starting at `offset`; return it and the offset just past it."""
    if offset >= len(data):
        raise ValueError("unexpected end of RLP input")
    prefix = data[offset]

    if prefix < SHORT_STRING_PREFIX:
        return bytes([prefix]), offset + 1

    if prefix < SHORT_LIST_PREFIX:
        start, length = _decode_length(data, offset, SHORT_STRING_PREFIX, LONG_STRING_PREFIX)
        end = start + length
        if end > len(data):
            raise ValueError("RLP string runs past the end of the input")
        payload = bytes(data[start:end])
        if length == 1 and payload[0] < SHORT_STRING_PREFIX:
            raise ValueError("non-canonical RLP: single byte below 0x80 carries a prefix")
        return payload, end

    start, length = _decode_length(data, offset, SHORT_LIST_PREFIX, LONG_LIST_PREFIX)
    end = start + length
    if end > len(data):
        raise ValueError("RLP list runs past the end of the input")
    items = []
    cursor = start
    while cursor < end:
        item, cursor = _decode_at(data, cursor)
        items.append(item)
    if cursor != end:
        raise ValueError("RLP list payload length does not match its items")
    return items, end


def rlp_decode(data: bytes) -> RLPItem:
    """
    Decode a complete RLP encoding.

    Raises:
        ValueError: On truncated, non-canonical or trailing input
    """
    data = bytes(data)
    item, end = _decode_at(data, 0)
    if end != len(data):
        raise ValueError(f"{len(data) - end} trailing bytes after RLP item")
    return item


# --- Padded MPT nodes ---


@dataclass
class RLPItemFixedSize:
    """One decoded item, zero-padded to a fixed capacity."""
    data: List[int]
    length: int


@dataclass
class MPTNodeFixedSize:
    """A decoded node: `list_len` padded items plus the encoded length of the node."""
    data: List[RLPItemFixedSize] = field(default_factory=list)
    length: int = 0


def decode_padded_mpt_node(
    encoded: Sequence[int],
    length: int,
    finish: bool,
    list_len: int,
    element_len: int = MAX_RLP_ITEM_SIZE,
) -> MPTNodeFixedSize:
    """
    Decode the first `length` bytes of `encoded` as an MPT node.

    Args:
        encoded: Zero-padded encoding buffer
        length: True encoded length
        finish: The proof path has terminated; return an empty node
        list_len: Item slots in the result (17 branch, 2 extension/leaf)
        element_len: Padded size of each item

    Returns:
        MPTNodeFixedSize with `list_len` items; missing trailing items are
        empty. `length` is the number of bytes the outer list encoding spans.

    Raises:
        ValueError: If the buffer is not a list of at most `list_len` byte
            strings of at most `element_len` bytes each
    """
    empty = [RLPItemFixedSize([0] * element_len, 0) for _ in range(list_len)]
    if finish:
        return MPTNodeFixedSize(empty, 0)

    if not 0 < length <= len(encoded):
        raise ValueError(f"encoded length {length} outside buffer of {len(encoded)} bytes")

    node = rlp_decode(bytes(encoded[:length]))
    if not isinstance(node, list):
        raise ValueError("MPT node encoding is not an RLP list")
    if len(node) > list_len:
        raise ValueError(f"MPT node has {len(node)} items, more than {list_len}")

    for i, item in enumerate(node):
        if isinstance(item, list):
            raise ValueError(f"item {i} is a nested list, which is not supported")
        if len(item) > element_len:
            raise ValueError(f"item {i} has {len(item)} bytes, more than {element_len}")
        empty[i] = RLPItemFixedSize(list(item) + [0] * (element_len - len(item)), len(item))

    return MPTNodeFixedSize(empty, length)



# --- Challenges ---


def check_seed_length(num_bytes: int) -> None:
    """
    Raises:
        ValueError: If `num_bytes` bytes carry fewer than MIN_SEED_BITS bits
    """
    if 8 * num_bytes < MIN_SEED_BITS:
        raise ValueError(f"seed has {8 * num_bytes} bits, at least {MIN_SEED_BITS} are required")


def seed_challenges(seed: bytes, num_challenges: int = NUM_LOOPS) -> List[int]:
    """
    Challenges the in-circuit verifier draws from `seed`, computed natively.

    The seed is packed exactly as the circuit packs it, so the result equals
    `derive_challenges` evaluated on the same bytes.
    """
    check_seed_length(len(seed))
    transcript = Transcript()
    transcript.put(pack_bytes(bytes(seed)))
    return transcript.get_challenges(num_challenges)
