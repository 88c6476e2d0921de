"""Condition maps - scalar equality constraints on request context."""

from collections.abc import Mapping
from types import MappingProxyType

from accessgate.domain.exceptions import ValidationError

Scalar = str | int | float | bool
Conditions = Mapping[str, Scalar]


def normalize_conditions(conditions: Mapping[str, object] | None) -> Conditions | None:
    """Validate a condition map and freeze it.

    Keys must be non-empty strings and values scalars. An empty map means
    "unconditional" and is returned as None.
    """
    if conditions is None:
        return None
    if not isinstance(conditions, Mapping):
        raise ValidationError("Conditions must be a mapping of string keys to scalar values")
    frozen: dict[str, Scalar] = {}
    for key, value in conditions.items():
        if not isinstance(key, str) or not key:
            raise ValidationError(f"Condition key must be a non-empty string: {key!r}")
        if not isinstance(value, (str, int, float, bool)):
            raise ValidationError(
                f"Condition {key!r} must be a string, number or boolean, "
                f"got {type(value).__name__}"
            )
        frozen[key] = value
    if not frozen:
        return None
    return MappingProxyType(frozen)
