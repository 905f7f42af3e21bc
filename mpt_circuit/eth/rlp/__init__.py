"""RLP decoding of Merkle-Patricia-Trie nodes, off-circuit and in-circuit."""

from .builder import (
    BRANCH_NODE,
    EXTENSION_NODE,
    LEAF_NODE,
    MAX_LIST_PAYLOAD,
    DecodeHint,
    ListHeaderParts,
    MPTNodeShape,
    decode_element_as_list,
    decode_mpt_node,
    derive_challenges,
    list_header_parts,
    read_decoded_node,
    verify_decoded_mpt_node,
)
from .utils import (
    MAX_RLP_ITEM_SIZE,
    MAX_SHORT_LENGTH,
    MIN_SEED_BITS,
    NUM_LOOPS,
    MPTNodeFixedSize,
    RLPItemFixedSize,
    check_seed_length,
    decode_padded_mpt_node,
    rlp_decode,
    rlp_encode,
    rlp_encode_item,
    rlp_encode_list,
    rlp_list_header,
    seed_challenges,
)

__all__ = [
    # In-circuit
    "BRANCH_NODE",
    "EXTENSION_NODE",
    "LEAF_NODE",
    "MAX_LIST_PAYLOAD",
    "DecodeHint",
    "ListHeaderParts",
    "MPTNodeShape",
    "decode_element_as_list",
    "decode_mpt_node",
    "derive_challenges",
    "list_header_parts",
    "read_decoded_node",
    "verify_decoded_mpt_node",
    # Reference codec and native challenges
    "MAX_RLP_ITEM_SIZE",
    "MAX_SHORT_LENGTH",
    "MIN_SEED_BITS",
    "NUM_LOOPS",
    "MPTNodeFixedSize",
    "RLPItemFixedSize",
    "check_seed_length",
    "decode_padded_mpt_node",
    "rlp_decode",
    "rlp_encode",
    "rlp_encode_item",
    "rlp_encode_list",
    "rlp_list_header",
    "seed_challenges",
]
