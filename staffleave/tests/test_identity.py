"""
Tests for login, token resolution and password changes
"""
import bcrypt
import pytest
from fastapi import status

from staffleave.core.errors import InvalidCredential, NotFound, Unauthenticated, ValidationError
from staffleave.core.security import create_access_token, hash_password, verify_password
from staffleave.models import AuditLog
from staffleave.services import identity_service
from staffleave.tests.helpers import PASSWORD, auth_headers, make_user


def test_login_success(client, db, teacher_user):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "Teacher@School.edu.sg", "password": PASSWORD},
        headers={"User-Agent": "pytest-agent", "X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"

    log = db.query(AuditLog).filter(AuditLog.action == "LOGIN").one()
    assert log.actor_id == str(teacher_user.id)
    assert log.status == "INFO"
    assert log.ip_address == "203.0.113.7"
    assert log.user_agent == "pytest-agent"


def test_login_wrong_password_is_audited(client, db, teacher_user):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "teacher@school.edu.sg", "password": "wrong-password"},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Invalid email or password"

    log = db.query(AuditLog).filter(AuditLog.action == "LOGIN").one()
    assert log.status == "WARNING"
    assert log.details["reason"] == "bad_password"


def test_login_unknown_email_is_audited_as_system(client, db):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "nobody@school.edu.sg", "password": "whatever1"},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    log = db.query(AuditLog).one()
    assert log.actor_id == "system"
    assert log.details["reason"] == "unknown_email"


def test_unknown_email_still_checks_a_password_hash(db, monkeypatch):
    checked = []

    def recording_verify(plain, hashed):
        checked.append(hashed)
        return verify_password(plain, hashed)

    monkeypatch.setattr(identity_service, "verify_password", recording_verify)

    with pytest.raises(Unauthenticated):
        identity_service.authenticate(db, "nobody@school.edu.sg", "whatever1")

    assert checked == [identity_service._DUMMY_PASSWORD_HASH]


def test_login_inactive_user_rejected(client, db):
    make_user(db, "gone@school.edu.sg", active=False)
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "gone@school.edu.sg", "password": PASSWORD},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_resolve_actor_rejects_deleted_user(db, teacher_user):
    token = create_access_token({"sub": str(teacher_user.id), "role": "TEACHER"})
    assert identity_service.resolve_actor(db, token).id == teacher_user.id

    db.delete(teacher_user)
    db.commit()
    with pytest.raises(Unauthenticated):
        identity_service.resolve_actor(db, token)


def test_resolve_actor_rejects_expired_token(db, teacher_user):
    token = create_access_token({"sub": str(teacher_user.id)}, expires_minutes=-1)
    with pytest.raises(Unauthenticated):
        identity_service.resolve_actor(db, token)


def test_resolve_actor_without_token(db):
    with pytest.raises(Unauthenticated):
        identity_service.resolve_actor(db, None)


def test_require_role(teacher_actor):
    assert identity_service.require_role(teacher_actor, ["TEACHER"]) is teacher_actor
    with pytest.raises(Unauthenticated):
        identity_service.require_role(None, ["TEACHER"])


def test_me_returns_profile_without_password(client, db, teacher_user):
    response = client.get("/api/v1/user/me", headers=auth_headers(client, "teacher@school.edu.sg"))

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["email"] == "teacher@school.edu.sg"
    assert data["teacherRoles"] == ["FORM"]
    assert data["employmentType"] == "FULL_TIME"
    assert "password" not in data
    assert "password_hash" not in data


def test_get_profile_of_vanished_user(db, teacher_actor, teacher_user):
    db.delete(teacher_user)
    db.commit()
    with pytest.raises(NotFound):
        identity_service.get_profile(db, teacher_actor)


def test_change_password_success(db, teacher_user):
    identity_service.change_credential(db, teacher_user.id, PASSWORD, "n3w-password")

    db.refresh(teacher_user)
    assert verify_password("n3w-password", teacher_user.password_hash)
    assert not verify_password(PASSWORD, teacher_user.password_hash)

    log = db.query(AuditLog).filter(AuditLog.action == "PASSWORD_CHANGE").one()
    assert log.status == "CRITICAL"
    assert log.details == {"success": True}


def test_wrong_current_password_wins_over_short_new_password(db, teacher_user):
    """A bad current password is reported even if the new one is too short"""
    with pytest.raises(InvalidCredential):
        identity_service.change_credential(db, teacher_user.id, "not-my-password", "abc")

    log = db.query(AuditLog).filter(AuditLog.action == "PASSWORD_CHANGE").one()
    assert log.status == "WARNING"


def test_short_new_password_with_correct_current(db, teacher_user):
    with pytest.raises(ValidationError) as exc_info:
        identity_service.change_credential(db, teacher_user.id, PASSWORD, "abc")
    assert exc_info.value.detail == "New password must be at least 8 characters long"

    db.refresh(teacher_user)
    assert verify_password(PASSWORD, teacher_user.password_hash)


def test_change_password_for_missing_user(db):
    with pytest.raises(NotFound):
        identity_service.change_credential(db, 4242, PASSWORD, "n3w-password")


def test_change_password_endpoint(client, db, teacher_user):
    headers = auth_headers(client, "teacher@school.edu.sg")

    response = client.post(
        "/api/v1/user/change-password",
        json={"currentPassword": "nope-nope", "newPassword": "n3w-password"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "INVALID_CREDENTIAL"

    response = client.post(
        "/api/v1/user/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "n3w-password"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Password updated successfully"}

    response = client.post(
        "/api/v1/auth/login",
        json={"email": "teacher@school.edu.sg", "password": "n3w-password"},
    )
    assert response.status_code == status.HTTP_200_OK


def test_change_password_requires_authentication(client, db):
    response = client.post(
        "/api/v1/user/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "n3w-password"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_legacy_bcrypt_hash_still_verifies():
    legacy = bcrypt.hashpw(b"old-password", bcrypt.gensalt()).decode("utf-8")
    assert verify_password("old-password", legacy)
    assert not verify_password("other", legacy)
    assert verify_password("fresh", hash_password("fresh"))
    assert not verify_password("x", "not-a-hash")
