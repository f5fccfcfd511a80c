"""
Context guardian policy: normalizes pod and container security contexts and
rejects pods whose pod-level context runs as root.
"""

import re
from functools import partial
from typing import Any, Dict, Optional

from loguru import logger

from guardian.exceptions import InvalidLabelValue, MalformedInput
from guardian.policies.base import Operation, PolicyBinding, Verdict
from guardian.policies.containers import containers

USER_LABEL = "uds/user"
GROUP_LABEL = "uds/group"
FS_GROUP_LABEL = "uds/fsgroup"

# Label -> pod securityContext field
LABEL_FIELDS = (
    (USER_LABEL, "runAsUser"),
    (GROUP_LABEL, "runAsGroup"),
    (FS_GROUP_LABEL, "fsGroup"),
)

DEFAULT_RUN_AS_USER = 1000
DEFAULT_RUN_AS_GROUP = 1000

AUDIT_ANNOTATION = "admission"
AUDIT_ANNOTATION_VALUE = "mutated-security-context"

NON_ROOT_DENY_MESSAGE = "Pod level securityContext does not meet the non-root user requirement."

_NON_NEGATIVE_INT = re.compile(r"^[0-9]+$")


def parse_id_label(label: str, value: str) -> int:
    """Parse a user/group id label value."""
    stripped = str(value).strip()
    if not _NON_NEGATIVE_INT.match(stripped):
        raise InvalidLabelValue(label, value)
    return int(stripped)


def _ensure_object(parent: Dict[str, Any], key: str, path: str) -> Dict[str, Any]:
    """Return parent[key], creating an empty object when it is absent."""
    value = parent.get(key)
    if value is None:
        value = parent[key] = {}
    elif not isinstance(value, dict):
        raise MalformedInput(f"{path} must be an object, got {type(value).__name__}")
    return value


def mutate_security_context(
    obj: Dict[str, Any],
    default_user: int = DEFAULT_RUN_AS_USER,
    default_group: int = DEFAULT_RUN_AS_GROUP,
) -> Dict[str, Any]:
    """Apply label overrides and safe defaults to the pod in place.

    Steps run in a fixed order so later defaults see earlier label values:
    label overrides, ``runAsNonRoot``, ``runAsUser``, ``runAsGroup``, then the
    container lockdown and finally the audit annotation. Re-applying to an
    already mutated pod is a no-op.

    Raises:
        InvalidLabelValue: a uds/* label is not a non-negative integer.
    """
    spec = _ensure_object(obj, "spec", "spec")
    metadata = _ensure_object(obj, "metadata", "metadata")
    labels = metadata.get("labels") or {}
    if not isinstance(labels, dict):
        raise MalformedInput(f"metadata.labels must be an object, got {type(labels).__name__}")

    pod_ctx = _ensure_object(spec, "securityContext", "spec.securityContext")

    for label, field_name in LABEL_FIELDS:
        value = labels.get(label)
        # Empty label values are ignored, same as an absent label
        if value:
            pod_ctx[field_name] = parse_id_label(label, value)

    if pod_ctx.get("runAsNonRoot") is None:
        pod_ctx["runAsNonRoot"] = True

    if pod_ctx.get("runAsUser") is None:
        pod_ctx["runAsUser"] = default_user

    if pod_ctx.get("runAsGroup") is None:
        pod_ctx["runAsGroup"] = default_group

    for container in containers(obj):
        container_ctx = container.security_context
        if container_ctx is None:
            container_ctx = {}
            container.security_context = container_ctx
        elif not isinstance(container_ctx, dict):
            raise MalformedInput(f"securityContext of container {container.name!r} must be an object")

        capabilities = _ensure_object(
            container_ctx, "capabilities", f"securityContext.capabilities of container {container.name!r}"
        )
        capabilities["drop"] = ["ALL"]
        container_ctx["allowPrivilegeEscalation"] = False
        container_ctx["privileged"] = False

    annotations = _ensure_object(metadata, "annotations", "metadata.annotations")
    annotations[AUDIT_ANNOTATION] = AUDIT_ANNOTATION_VALUE

    return obj


def is_root(ctx: Dict[str, Any]) -> bool:
    run_as_root = ctx.get("runAsNonRoot") is False
    # bool is an int subclass; runAsUser: False is not uid 0, but 0.0 is
    run_as_user = ctx.get("runAsUser")
    run_as_root_user = (
        not isinstance(run_as_user, bool)
        and isinstance(run_as_user, (int, float))
        and run_as_user == 0
    )
    return run_as_root or run_as_root_user


def validate_non_root(obj: Dict[str, Any]) -> Verdict:
    """Deny pods whose pod-level securityContext runs as root.

    Only the pod-level context is inspected. Container-level ``runAsUser``
    overrides are not checked.
    """
    spec = obj.get("spec") or {}
    if not isinstance(spec, dict):
        raise MalformedInput(f"spec must be an object, got {type(spec).__name__}")
    pod_ctx = spec.get("securityContext") or {}
    if not isinstance(pod_ctx, dict):
        raise MalformedInput(f"spec.securityContext must be an object, got {type(pod_ctx).__name__}")

    if is_root(pod_ctx):
        logger.debug("Pod level securityContext runs as root: {}", pod_ctx)
        return Verdict.deny(NON_ROOT_DENY_MESSAGE)

    return Verdict.approve()


def security_context_binding(
    default_user: Optional[int] = None,
    default_group: Optional[int] = None,
) -> PolicyBinding:
    """Bind the context guardian policy to Pod create and update requests."""
    mutate = partial(
        mutate_security_context,
        default_user=DEFAULT_RUN_AS_USER if default_user is None else default_user,
        default_group=DEFAULT_RUN_AS_GROUP if default_group is None else default_group,
    )
    return PolicyBinding(
        name="context-guardian",
        kind="Pod",
        operations=frozenset({Operation.CREATE, Operation.UPDATE}),
        mutate=mutate,
        validate=validate_non_root,
    )
