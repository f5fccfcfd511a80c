"""
Mutate-then-validate admission pipeline.

Every request is processed on a deep copy of its object. Matching bindings
mutate the copy in registration order, then validate the fully mutated copy.
The first deny wins; otherwise the decision carries a JSON patch from the
submitted object to the mutated one.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import jsonpatch
from loguru import logger

from guardian.config import AdmissionConfig
from guardian.exceptions import MalformedInput
from guardian.models import AdmissionRequest
from guardian.policies.base import PolicyBinding, PolicyRegistry, registry_of
from guardian.policies.security_context import security_context_binding


class PipelineState(str, Enum):
    RECEIVED = "received"
    MUTATING = "mutating"
    VALIDATING = "validating"
    DECIDED = "decided"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    patch: List[Dict[str, Any]] = field(default_factory=list)
    bindings: List[str] = field(default_factory=list)


class AdmissionPipeline:
    def __init__(self, registry: PolicyRegistry):
        if not registry.frozen:
            registry.freeze()
        self.registry = registry

    @classmethod
    def from_config(cls, config: AdmissionConfig) -> "AdmissionPipeline":
        return cls(
            registry_of(
                [
                    security_context_binding(
                        default_user=config.default_run_as_user,
                        default_group=config.default_run_as_group,
                    )
                ]
            )
        )

    def process(self, request: AdmissionRequest) -> Decision:
        """Run mutation and validation for one request and decide.

        Raises:
            MalformedInput: a mutation could not be applied. The partially
                mutated copy is discarded and no decision is made.
        """
        bindings = self._select(request)
        if not bindings:
            return Decision(allowed=True)

        names = [binding.name for binding in bindings]
        original = request.object
        working = copy.deepcopy(original)

        self._transition(request, PipelineState.MUTATING)
        for binding in bindings:
            try:
                result = binding.mutate(working)
            except MalformedInput as exc:
                logger.warning(
                    "Mutation {} failed for {} {}: {}",
                    binding.name,
                    request.kind.kind,
                    request.uid,
                    exc,
                )
                raise
            if result is not None:
                working = result

        denied = self._run_validations(request, bindings, working)
        if denied is not None:
            return Decision(allowed=False, reason=denied, bindings=names)

        patch = jsonpatch.make_patch(original, working).patch
        logger.info(
            "Approved {} {} ({}) with {} patch operation(s)",
            request.kind.kind,
            request.uid,
            ", ".join(names),
            len(patch),
        )
        return Decision(allowed=True, patch=patch, bindings=names)

    def validate(self, request: AdmissionRequest) -> Decision:
        """Run only the validations, against the object as received."""
        bindings = self._select(request)
        if not bindings:
            return Decision(allowed=True)

        names = [binding.name for binding in bindings]
        denied = self._run_validations(request, bindings, copy.deepcopy(request.object))
        if denied is not None:
            return Decision(allowed=False, reason=denied, bindings=names)

        logger.info("Approved {} {} ({})", request.kind.kind, request.uid, ", ".join(names))
        return Decision(allowed=True, bindings=names)

    def _select(self, request: AdmissionRequest) -> List[PolicyBinding]:
        self._transition(request, PipelineState.RECEIVED)
        if request.object is None:
            logger.debug("Request {} carries no object, passing through", request.uid)
            self._transition(request, PipelineState.DECIDED)
            return []

        bindings = self.registry.bindings_for(request.kind.kind, request.operation)
        if not bindings:
            logger.debug(
                "No policy binding for {} {}, passing through",
                request.operation,
                request.kind.kind,
            )
            self._transition(request, PipelineState.DECIDED)
        if request.dry_run:
            logger.debug("Request {} is a dry run", request.uid)
        return bindings

    def _run_validations(
        self,
        request: AdmissionRequest,
        bindings: List[PolicyBinding],
        obj: Dict[str, Any],
    ) -> Optional[str]:
        """Return the first deny reason, or None when every binding approves."""
        self._transition(request, PipelineState.VALIDATING)
        try:
            for binding in bindings:
                verdict = binding.validate(obj)
                if not verdict.allowed:
                    logger.info(
                        "Denied {} {} by {}: {}",
                        request.kind.kind,
                        request.uid,
                        binding.name,
                        verdict.reason,
                    )
                    return verdict.reason or f"Denied by {binding.name}"
            return None
        finally:
            self._transition(request, PipelineState.DECIDED)

    @staticmethod
    def _transition(request: AdmissionRequest, state: PipelineState) -> None:
        logger.debug("Request {} -> {}", request.uid, state.value)
