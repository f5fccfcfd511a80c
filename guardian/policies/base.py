"""
Policy binding model: which kinds and operations a policy applies to, how it
mutates the object and how it decides on the mutated result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional

from loguru import logger

from guardian.exceptions import RegistryFrozen

ObjectGraph = Dict[str, Any]


class Operation(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"


@dataclass(frozen=True)
class Verdict:
    """Outcome of a single validation function."""

    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def approve(cls) -> "Verdict":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "Verdict":
        return cls(allowed=False, reason=reason)


# Mutations may edit the object in place (returning None) or return a replacement.
MutateFn = Callable[[ObjectGraph], Optional[ObjectGraph]]
ValidateFn = Callable[[ObjectGraph], Verdict]


@dataclass(frozen=True)
class PolicyBinding:
    name: str
    kind: str
    operations: FrozenSet[Operation]
    mutate: MutateFn
    validate: ValidateFn

    def matches(self, kind: str, operation: str) -> bool:
        if kind != self.kind:
            return False
        try:
            return Operation(operation) in self.operations
        except ValueError:
            return False


@dataclass
class PolicyRegistry:
    """Ordered set of policy bindings, built once at start-up."""

    _bindings: List[PolicyBinding] = field(default_factory=list)
    _frozen: bool = False

    def register(self, binding: PolicyBinding) -> PolicyBinding:
        if self._frozen:
            raise RegistryFrozen(f"Cannot register {binding.name!r}: registry is frozen")
        if any(existing.name == binding.name for existing in self._bindings):
            raise ValueError(f"Policy binding {binding.name!r} is already registered")

        self._bindings.append(binding)
        logger.debug(
            "Registered policy binding {} for {} on {}",
            binding.name,
            binding.kind,
            sorted(op.value for op in binding.operations),
        )
        return binding

    def freeze(self) -> "PolicyRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def bindings_for(self, kind: str, operation: str) -> List[PolicyBinding]:
        """Bindings matching the kind and operation, in registration order."""
        return [binding for binding in self._bindings if binding.matches(kind, operation)]


def registry_of(bindings: Iterable[PolicyBinding]) -> PolicyRegistry:
    """Build a frozen registry from bindings, preserving their order."""
    registry = PolicyRegistry()
    for binding in bindings:
        registry.register(binding)
    return registry.freeze()
