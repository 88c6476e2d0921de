"""Domain exceptions."""


class AccessGateError(Exception):
    """Base exception for AccessGate."""

    pass


class NotFound(AccessGateError):
    """Referenced permission or grant does not exist."""

    def __init__(self, entity: str, identifier: object) -> None:
        super().__init__(f"{entity} not found: {identifier}")
        self.entity = entity
        self.identifier = identifier


class DuplicateCode(AccessGateError):
    """Permission with the same code already exists."""

    pass


class Conflict(AccessGateError):
    """Write collides with existing state (e.g. an active grant for the pair)."""

    pass


class Forbidden(AccessGateError):
    """Operation is not allowed on this entity."""

    pass


class PermissionInUse(Conflict, Forbidden):
    """Permission is still referenced by direct grants and cannot be deleted."""

    pass


class ImmutableFieldError(AccessGateError):
    """Attempt to change a field that is fixed after creation."""

    def __init__(self, entity: str, fields: list[str]) -> None:
        super().__init__(f"{entity} fields are immutable: {', '.join(sorted(fields))}")
        self.entity = entity
        self.fields = sorted(fields)


class ValidationError(AccessGateError):
    """Validation failed for input data."""

    pass


class InfrastructureError(AccessGateError):
    """Backing store is unreachable or an operation timed out."""

    pass
