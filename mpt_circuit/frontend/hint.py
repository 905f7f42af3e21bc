"""Hints: off-circuit computations run during witness generation.

A hint is split in two:

- the descriptor, a frozen dataclass registered under a stable `name`. It is
  fixed when the circuit is defined and serializes to a plain dict, so the
  circuit's shape never depends on witness content.
- the runner, `HintGenerator`, which binds the descriptor to the input and
  output targets and executes `Hint.hint` over concrete values only when the
  witness is generated.

Nothing a hint computes is constrained by itself. Every caller of
`CircuitBuilder.hint` must add constraints tying the outputs back to the
inputs.

Example:
    @register_hint
    @dataclass(frozen=True)
    class SquareRootHint(Hint):
        name: ClassVar[str] = "example.sqrt"

        def hint(self, input_stream, output_stream):
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import Any, ClassVar, Dict, List

from ..backend.errors import HintShapeError
from ..backend.witness import PartialWitness, WitnessGenerator
from .streams import ValueStream

# Registry mapping hint names to descriptor classes
HINT_REGISTRY: dict[str, type["Hint"]] = {}


class Hint(ABC):
    """Serializable descriptor of an off-circuit computation."""

    name: ClassVar[str]

    @abstractmethod
    def hint(self, input_stream: ValueStream, output_stream: ValueStream) -> None:
        """Read inputs from `input_stream`, write outputs to `output_stream`."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "params": asdict(self)}


def register_hint(cls: type[Hint]) -> type[Hint]:
    """Class decorator adding a hint descriptor to HINT_REGISTRY."""
    existing = HINT_REGISTRY.get(cls.name)
    if existing is not None and existing is not cls:
        raise ValueError(f"hint name '{cls.name}' already registered by {existing.__name__}")
    HINT_REGISTRY[cls.name] = cls
    return cls


def get_hint(name: str) -> type[Hint]:
    """
    Look up a registered hint class.

    Raises:
        KeyError: If no hint is registered under `name`
    """
    if name not in HINT_REGISTRY:
        raise KeyError(
            f"No hint registered as '{name}'. Available: {sorted(HINT_REGISTRY.keys())}"
        )
    return HINT_REGISTRY[name]


def hint_from_dict(data: Dict[str, Any]) -> Hint:
    """Rebuild a descriptor from the output of `Hint.to_dict`."""
    return get_hint(data["name"])(**data.get("params", {}))


class HintGenerator(WitnessGenerator):
    """Runs one hint invocation. Output targets are appended as the caller reads them."""

    def __init__(self, hint: Hint, input_targets: List[int]):
        self.hint = hint
        self.input_targets = list(input_targets)
        self.output_targets: List[int] = []

    def run(self, witness: PartialWitness) -> None:
        name = self.hint.name
        input_stream = ValueStream(
            [witness.get_target(t) for t in self.input_targets], hint_name=name
        )
        output_stream = ValueStream(hint_name=name)

        self.hint.hint(input_stream, output_stream)

        if len(output_stream) != len(self.output_targets):
            raise HintShapeError(
                f"hint '{name}' produced {len(output_stream)} elements but the circuit "
                f"declared {len(self.output_targets)} output elements"
            )
        for target, value in zip(self.output_targets, output_stream.values):
            witness.set_target(target, value)
