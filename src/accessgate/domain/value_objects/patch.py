"""Explicit per-field patch values for update operations.

``UNCHANGED`` leaves a field as it is, ``CLEAR`` resets it to its empty
value and ``SetTo(value)`` replaces it.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class Unchanged:
    """Leave the field as it is."""

    _instance: "Unchanged | None" = None

    def __new__(cls) -> "Unchanged":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCHANGED"


class Clear:
    """Reset the field to its empty value."""

    _instance: "Clear | None" = None

    def __new__(cls) -> "Clear":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CLEAR"


@dataclass(frozen=True)
class SetTo(Generic[T]):
    """Replace the field with ``value``."""

    value: T


UNCHANGED = Unchanged()
CLEAR = Clear()

Patch = Unchanged | Clear | SetTo


def apply_patch(patch: Patch, current: T, empty: T | None = None) -> T | None:
    """Return the field value after applying ``patch`` to ``current``."""
    if isinstance(patch, Unchanged):
        return current
    if isinstance(patch, Clear):
        return empty
    if isinstance(patch, SetTo):
        return patch.value
    raise TypeError(f"Expected UNCHANGED, CLEAR or SetTo(...), got {patch!r}")
