"""Direct grant joined with its permission."""

from dataclasses import dataclass

from accessgate.domain.entities.direct_grant import DirectGrant
from accessgate.domain.entities.permission import Permission
from accessgate.domain.value_objects import Conditions, GrantEffect


@dataclass(frozen=True)
class GrantedPermission:
    """Permission a user holds directly, with the grant that carries it."""

    permission: Permission
    grant: DirectGrant

    @property
    def effect(self) -> GrantEffect:
        return self.grant.effect

    @property
    def conditions(self) -> Conditions | None:
        return self.grant.conditions
