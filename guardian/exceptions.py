class AdmissionException(Exception):
    """Base class for errors raised while processing an admission request."""


class MalformedInput(AdmissionException):
    """The request object cannot be processed as submitted."""


class InvalidLabelValue(MalformedInput):

    def __init__(self, label: str, value: str):
        self.label = label
        self.value = value
        super().__init__(f"Label {label!r} must be a non-negative integer, got {value!r}")


class RegistryFrozen(AdmissionException):
    """Policy bindings can only be registered before the registry is frozen."""
