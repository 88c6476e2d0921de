"""Permission code - module:resource:action."""

import re
from dataclasses import dataclass

from accessgate.domain.exceptions import ValidationError

SEPARATOR = ":"
WILDCARD = "*"

_SEGMENT = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True)
class PermissionCode:
    """Structured permission code.

    Catalog codes are always concrete. Role grant sets may also carry
    patterns where any segment is ``*`` (e.g. ``stock:*:delete``).
    """

    module: str
    resource: str
    action: str

    @classmethod
    def parse(cls, value: str, *, allow_wildcard: bool = False) -> "PermissionCode":
        """Parse ``module:resource:action``; raise ValidationError if malformed."""
        if not isinstance(value, str):
            raise ValidationError(f"Permission code must be a string, got {type(value).__name__}")
        parts = value.split(SEPARATOR)
        if len(parts) != 3:
            raise ValidationError(
                f"Permission code must have the form module:resource:action: {value!r}"
            )
        for part in parts:
            if allow_wildcard and part == WILDCARD:
                continue
            if not _SEGMENT.match(part):
                raise ValidationError(f"Invalid permission code segment {part!r} in {value!r}")
        return cls(module=parts[0], resource=parts[1], action=parts[2])

    @classmethod
    def from_parts(cls, module: str, resource: str, action: str) -> "PermissionCode":
        """Build a concrete code from its segments."""
        return cls.parse(SEPARATOR.join((module, resource, action)))

    @staticmethod
    def is_valid(value: str, *, allow_wildcard: bool = False) -> bool:
        try:
            PermissionCode.parse(value, allow_wildcard=allow_wildcard)
        except ValidationError:
            return False
        return True

    @property
    def value(self) -> str:
        return SEPARATOR.join((self.module, self.resource, self.action))

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD in (self.module, self.resource, self.action)

    def covers(self, other: "PermissionCode") -> bool:
        """True if this code (possibly a pattern) matches the concrete ``other``."""
        return all(
            mine == WILDCARD or mine == theirs
            for mine, theirs in zip(
                (self.module, self.resource, self.action),
                (other.module, other.resource, other.action),
            )
        )

    def __str__(self) -> str:
        return self.value
