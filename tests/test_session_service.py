from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from shopfloor.core.errors import InvalidSession, SessionExpired, UserNotFound
from shopfloor.models.auth_session import AuthSession
from shopfloor.services import session_service


def _expire(db, token):
    db.query(AuthSession).filter(AuthSession.token == token).update(
        {"expires_at": datetime.now(timezone.utc) - timedelta(minutes=1)}
    )
    db.commit()


def _row(db, token) -> AuthSession:
    db.expire_all()
    return db.query(AuthSession).filter(AuthSession.token == token).one()


def test_issue_then_validate_resolves_same_user(db, make_user):
    u = make_user("op1")
    token, expires_at = session_service.issue(db, u.id)
    assert token
    assert expires_at > datetime.now(timezone.utc) + timedelta(hours=23)
    assert session_service.validate(db, token).id == u.id


def test_unknown_token_is_invalid_session(db):
    with pytest.raises(InvalidSession):
        session_service.validate(db, "nope")
    with pytest.raises(InvalidSession):
        session_service.validate(db, "")


def test_invalidate_is_idempotent(db, make_user):
    u = make_user("op1")
    token, _ = session_service.issue(db, u.id)
    session_service.invalidate(db, token)
    session_service.invalidate(db, token)
    session_service.invalidate(db, "never-issued")
    with pytest.raises(InvalidSession):
        session_service.validate(db, token)


def test_expired_session_reports_once_then_invalid(db, make_user):
    u = make_user("op1")
    token, _ = session_service.issue(db, u.id)
    _expire(db, token)

    with pytest.raises(SessionExpired):
        session_service.validate(db, token)
    assert _row(db, token).is_valid is False

    with pytest.raises(InvalidSession):
        session_service.validate(db, token)
    with pytest.raises(InvalidSession):
        session_service.validate(db, token)


def test_expiry_write_failure_still_reports_expired(db, make_user, monkeypatch):
    u = make_user("op1")
    token, _ = session_service.issue(db, u.id)
    _expire(db, token)

    def failing_commit():
        raise OperationalError("UPDATE sessions", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(SessionExpired):
        session_service.validate(db, token)
    monkeypatch.undo()

    # the write was lost, so the next check detects expiry again and records it
    assert _row(db, token).is_valid is True
    with pytest.raises(SessionExpired):
        session_service.validate(db, token)
    with pytest.raises(InvalidSession):
        session_service.validate(db, token)


def test_inactive_user_is_user_not_found(db, make_user):
    u = make_user("op1")
    token, _ = session_service.issue(db, u.id)
    u.is_active = False
    db.commit()
    with pytest.raises(UserNotFound):
        session_service.validate(db, token)


def test_invalidate_all_for_user(db, make_user):
    u = make_user("op1")
    other = make_user("op2")
    t1, _ = session_service.issue(db, u.id)
    t2, _ = session_service.issue(db, u.id)
    t3, _ = session_service.issue(db, other.id)

    assert session_service.invalidate_all_for(db, u.id) == 2
    for t in (t1, t2):
        with pytest.raises(InvalidSession):
            session_service.validate(db, t)
    assert session_service.validate(db, t3).id == other.id


def test_is_valid(db, make_user):
    u = make_user("op1")
    token, _ = session_service.issue(db, u.id)
    assert session_service.is_valid(db, token)
    assert not session_service.is_valid(db, "unknown")
    session_service.invalidate(db, token)
    assert not session_service.is_valid(db, token)
