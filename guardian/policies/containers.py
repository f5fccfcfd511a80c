from typing import Any, Dict, Iterator, Optional

from guardian.exceptions import MalformedInput


class ContainerRef:
    """Mutable view over one container definition of a pod spec."""

    def __init__(self, container: Dict[str, Any]):
        self._container = container

    @property
    def name(self) -> Optional[str]:
        return self._container.get("name")

    @property
    def security_context(self) -> Optional[Dict[str, Any]]:
        return self._container.get("securityContext")

    @security_context.setter
    def security_context(self, value: Dict[str, Any]) -> None:
        self._container["securityContext"] = value


class Containers:
    """Restartable iterable over ``spec.containers`` of a pod object."""

    def __init__(self, obj: Dict[str, Any]):
        self._obj = obj

    def __iter__(self) -> Iterator[ContainerRef]:
        spec = self._obj.get("spec") or {}
        if not isinstance(spec, dict):
            raise MalformedInput("spec must be an object")
        entries = spec.get("containers") or []
        if not isinstance(entries, list):
            raise MalformedInput("spec.containers must be a list")
        for index, container in enumerate(entries):
            if not isinstance(container, dict):
                raise MalformedInput(f"spec.containers[{index}] must be an object")
            yield ContainerRef(container)


def containers(obj: Dict[str, Any]) -> Containers:
    """Return one mutable reference per primary container of ``obj``.

    Init and ephemeral containers are not included.
    """
    return Containers(obj)
