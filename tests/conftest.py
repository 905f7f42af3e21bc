"""Shared fixtures: real MPT node encodings and decode-circuit factories."""

from typing import Callable, Optional

import pytest

from mpt_circuit.backend.circuit import Circuit, CircuitOutput
from mpt_circuit.eth.rlp import (
    BRANCH_NODE,
    MPTNodeShape,
    decode_element_as_list,
    decode_mpt_node,
)
from mpt_circuit.frontend import ArrayVariable, BoolVariable, ByteVariable, CircuitBuilder, Variable

# Branch node: 16 children that are 32-byte hashes, empty 17th item
BRANCH_NODE_RLP = bytes.fromhex(
    "f90211a0215ead887d4da139eba306f76d765f5c4bfb03f6118ac1eb05eec3a92e1b0076a03eb28e7b61c689fae9"
    "45b279f873cfdddf4e66db0be0efead563ea08bc4a269fa03025e2cce6f9c1ff09c8da516d938199c809a7f94dc"
    "d61211974aebdb85a4e56a0188d1100731419827900267bf4e6ea6d428fa5a67656e021485d1f6c89e69be6a0b2"
    "81bb20061318a515afbdd02954740f069ebc75e700fde24dfbdf8c76d57119a0d8d77d917f5b7577e7e644bbc7a"
    "933632271a8daadd06a8e7e322f12dd828217a00f301190681b368db4308d1d1aa1794f85df08d4f4f646ecc496"
    "7c58fd9bd77ba0206598a4356dd50c70cfb1f0285bdb1402b7d65b61c851c095a7535bec230d5aa000959956c21"
    "48c82c207272af1ae129403d42e8173aedf44a190e85ee5fef8c3a0c88307e92c80a76e057e82755d9d67934ae0"
    "40a6ec402bc156ad58dbcd2bcbc4a0e40a8e323d0b0b19d37ab6a3d110de577307c6f8efed15097dfb5551955fc"
    "770a02da2c6b12eedab6030b55d4f7df2fb52dab0ef4db292cb9b9789fa170256a11fa0d00e11cde7531fb79a31"
    "5b4d81ea656b3b452fe3fe7e50af48a1ac7bf4aa6343a066625c0eb2f6609471f20857b97598ae4dfc197666ff7"
    "2fe47b94e4124900683a0ace3aa5d35ba3ebbdc0abde8add5896876b25261717c0a415c92642c7889ec66a03a49"
    "31a67ae8ebc1eca9ffa711c16599b86d5286504182618d9c2da7b83f5ef780"
)

# Extension node ["0x006f", "0x188d11...9be6"]: even path 6 -> f, child hash
EXTENSION_NODE_RLP = bytes.fromhex(
    "e482006fa0188d1100731419827900267bf4e6ea6d428fa5a67656e021485d1f6c89e69be6"
)

DEFAULT_SEED = bytes(range(1, 17))


def pad(data: bytes, size: int) -> list:
    assert len(data) <= size
    return list(data) + [0] * (size - len(data))


class DecodeCircuit:
    """A built decode circuit plus the shapes needed to feed and read it."""

    def __init__(self, circuit: Circuit, encoding_len: int, shape: MPTNodeShape, seed_len: int):
        self.circuit = circuit
        self.encoding_len = encoding_len
        self.shape = shape
        self.seed_len = seed_len

    def prove(self, encoding: bytes, finish: bool = False, seed: bytes = DEFAULT_SEED,
              length: Optional[int] = None) -> CircuitOutput:
        inputs = self.circuit.input()
        inputs.write(ArrayVariable.of(ByteVariable, self.encoding_len), pad(encoding, self.encoding_len))
        inputs.write(Variable, len(encoding) if length is None else length)
        inputs.write(BoolVariable, finish)
        if self.seed_len:
            inputs.write(ArrayVariable.of(ByteVariable, self.seed_len), list(seed))
        return self.circuit.prove(inputs)

    def decode(self, encoding: bytes, **kwargs):
        """Prove and return (items, item_lengths, total_length)."""
        output = self.prove(encoding, **kwargs)
        items = output.read(self.shape.items_type())
        lens = output.read(self.shape.lengths_type())
        total = output.read(Variable)
        return items, lens, total


@pytest.fixture
def build_decode_circuit() -> Callable[..., DecodeCircuit]:
    """Factory: build_decode_circuit(encoding_len, shape, verified=True, seed_len=16)."""

    def _build(encoding_len: int, shape: MPTNodeShape = BRANCH_NODE, verified: bool = True,
               seed_len: int = len(DEFAULT_SEED)) -> DecodeCircuit:
        builder = CircuitBuilder()
        encoded = builder.read(ArrayVariable.of(ByteVariable, encoding_len))
        length = builder.read(Variable)
        finish = builder.read(BoolVariable)
        if verified:
            seed = builder.read(ArrayVariable.of(ByteVariable, seed_len))
            items, lens, total = decode_mpt_node(builder, encoded, length, finish, seed, shape)
        else:
            seed_len = 0
            items, lens, total = decode_element_as_list(builder, encoded, length, finish, shape)
        builder.write(items)
        builder.write(lens)
        builder.write(total)
        return DecodeCircuit(builder.build(), encoding_len, shape, seed_len)

    return _build
