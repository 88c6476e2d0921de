"""Domain value objects."""

from accessgate.domain.value_objects.conditions import Conditions, Scalar, normalize_conditions
from accessgate.domain.value_objects.decision_reason import DecisionReason
from accessgate.domain.value_objects.grant_effect import GrantEffect
from accessgate.domain.value_objects.patch import (
    CLEAR,
    UNCHANGED,
    Clear,
    Patch,
    SetTo,
    Unchanged,
    apply_patch,
)
from accessgate.domain.value_objects.permission_code import PermissionCode

__all__ = [
    "CLEAR",
    "UNCHANGED",
    "Clear",
    "Conditions",
    "DecisionReason",
    "GrantEffect",
    "Patch",
    "PermissionCode",
    "Scalar",
    "SetTo",
    "Unchanged",
    "apply_patch",
    "normalize_conditions",
]
