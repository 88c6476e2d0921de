"""Reasons attached to authorization decisions."""

from enum import StrEnum


class DecisionReason(StrEnum):
    """Why the resolver allowed or denied a request."""

    ROLE_ALLOW = "role_allow"
    DIRECT_ALLOW = "direct_allow"
    DIRECT_DENY = "direct_deny"
    NO_GRANT = "no_grant"
