"""Polarity of a direct grant."""

from enum import StrEnum


class GrantEffect(StrEnum):
    """Whether a direct grant allows or explicitly denies a permission."""

    ALLOW = "allow"
    DENY = "deny"
