"""
Role authorization.

Roles form a closed enumeration and capability tiers are strictly nested:

    admin -> {Admin}
    edit  -> {Admin, Operator}
    view  -> {Admin, Operator, Viewer}

``check`` is a pure function of the user's role and the requested tier.
"""
from enum import Enum

from shopfloor.core.errors import PermissionDenied, ValidationError


class Role(str, Enum):
    ADMIN = "Admin"
    OPERATOR = "Operator"
    VIEWER = "Viewer"

    @classmethod
    def parse(cls, value) -> "Role":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError("Invalid role. Must be Admin, Operator, or Viewer")


ROLE_RANK = {
    Role.VIEWER: 1,
    Role.OPERATOR: 2,
    Role.ADMIN: 3,
}


class Tier(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"


TIER_ALLOWED = {
    Tier.ADMIN: frozenset({Role.ADMIN}),
    Tier.EDIT: frozenset({Role.ADMIN, Role.OPERATOR}),
    Tier.VIEW: frozenset({Role.ADMIN, Role.OPERATOR, Role.VIEWER}),
}


def _role_of(user) -> Role | None:
    raw = getattr(user, "role", None)
    try:
        return Role(raw)
    except ValueError:
        return None


def allows(role: Role | None, tier: Tier) -> bool:
    return role is not None and role in TIER_ALLOWED[Tier(tier)]


def check(user, tier: Tier) -> None:
    """Raise PermissionDenied unless the user's role belongs to the tier's allow-set."""
    tier = Tier(tier)
    role = _role_of(user)
    if not allows(role, tier):
        required = sorted((r.value for r in TIER_ALLOWED[tier]), key=lambda v: -ROLE_RANK[Role(v)])
        raise PermissionDenied(required=required, actual=str(getattr(user, "role", None)))
