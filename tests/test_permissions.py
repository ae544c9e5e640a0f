from types import SimpleNamespace

import pytest

from shopfloor.core.errors import PermissionDenied, ValidationError
from shopfloor.core.permissions import ROLE_RANK, Role, Tier, allows, check


def _user(role):
    return SimpleNamespace(id=1, role=role)


def _allowed(role, tier) -> bool:
    try:
        check(_user(role), tier)
    except PermissionDenied:
        return False
    return True


@pytest.mark.parametrize(
    "role,expected",
    [
        ("Admin", {Tier.VIEW, Tier.EDIT, Tier.ADMIN}),
        ("Operator", {Tier.VIEW, Tier.EDIT}),
        ("Viewer", {Tier.VIEW}),
    ],
)
def test_allow_sets(role, expected):
    assert {t for t in Tier if _allowed(role, t)} == expected


def test_check_is_monotonic_in_role_rank():
    order = [Tier.VIEW, Tier.EDIT, Tier.ADMIN]
    for role in Role:
        results = [_allowed(role.value, t) for t in order]
        # once a tier is denied, every stricter tier is denied too
        assert results == sorted(results, reverse=True)
        # a higher-ranked role never loses a tier a lower one has
        for other in Role:
            if ROLE_RANK[other] >= ROLE_RANK[role]:
                for t in order:
                    if _allowed(role.value, t):
                        assert _allowed(other.value, t)


def test_permission_denied_carries_required_and_actual():
    with pytest.raises(PermissionDenied) as exc:
        check(_user("Viewer"), Tier.EDIT)
    assert exc.value.required == ["Admin", "Operator"]
    assert exc.value.actual == "Viewer"
    assert exc.value.to_dict()["kind"] == "permission_denied"


def test_unknown_role_is_denied_everywhere():
    for tier in Tier:
        assert not _allowed("Superuser", tier)
        assert not _allowed(None, tier)


def test_allows_matches_check():
    for role in Role:
        for tier in Tier:
            assert allows(role, tier) == _allowed(role.value, tier)
    assert not allows(None, Tier.VIEW)


def test_role_parse():
    assert Role.parse("Operator") is Role.OPERATOR
    assert Role.parse(Role.VIEWER) is Role.VIEWER
    with pytest.raises(ValidationError):
        Role.parse("admin")
