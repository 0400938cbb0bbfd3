"""
Tests for user administration endpoints
"""
from datetime import date

from fastapi import status

from staffleave.core.security import verify_password
from staffleave.models import AuditLog, User
from staffleave.tests.helpers import PASSWORD, auth_headers, make_submission

NEW_TEACHER = {
    "name": "Nurul Huda",
    "email": "Nurul@School.edu.sg",
    "password": "welcome123",
    "role": "TEACHER",
    "icNumber": "900101-14-5566",
    "phoneNumber": "+6591234567",
    "teacherRoles": ["FORM"],
    "employmentType": "PERMANENT_PART_TIME",
}


def test_admin_creates_teacher(client, db, admin_user):
    response = client.post("/api/v1/users", json=NEW_TEACHER, headers=auth_headers(client, "admin@school.edu.sg"))

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["email"] == "nurul@school.edu.sg"
    assert data["employmentType"] == "PERMANENT_PART_TIME"
    assert data["teacherRoles"] == ["FORM"]
    assert "password" not in data

    user = db.query(User).filter(User.email == "nurul@school.edu.sg").one()
    assert verify_password("welcome123", user.password_hash)

    log = db.query(AuditLog).filter(AuditLog.entity_type == "USER", AuditLog.action == "CREATE").one()
    assert log.actor_id == str(admin_user.id)
    assert "password" not in log.details


def test_duplicate_email_conflicts(client, db, admin_user, teacher_user):
    payload = dict(NEW_TEACHER, email="TEACHER@school.edu.sg")
    response = client.post("/api/v1/users", json=payload, headers=auth_headers(client, "admin@school.edu.sg"))
    assert response.status_code == status.HTTP_409_CONFLICT


def test_missing_fields(client, db, admin_user):
    payload = {key: value for key, value in NEW_TEACHER.items() if key != "password"}
    response = client.post("/api/v1/users", json=payload, headers=auth_headers(client, "admin@school.edu.sg"))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Missing required fields"


def test_student_requires_level(client, db, admin_user):
    payload = {"name": "Pupil", "email": "pupil@school.edu.sg", "password": "welcome123", "role": "STUDENT"}
    headers = auth_headers(client, "admin@school.edu.sg")

    response = client.post("/api/v1/users", json=payload, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Students must have a level assigned"

    response = client.post("/api/v1/users", json=dict(payload, level="SECONDARY_1"), headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["level"] == "SECONDARY_1"


def test_invalid_ic_number(client, db, admin_user):
    payload = dict(NEW_TEACHER, icNumber="12-34")
    response = client.post("/api/v1/users", json=payload, headers=auth_headers(client, "admin@school.edu.sg"))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Invalid IC number format"


def test_teacher_cannot_create_users(client, db, teacher_user):
    response = client.post("/api/v1/users", json=NEW_TEACHER, headers=auth_headers(client, "teacher@school.edu.sg"))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_list_users(client, db, admin_user, teacher_user, principal_user):
    headers = auth_headers(client, "admin@school.edu.sg")

    response = client.get("/api/v1/users", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert len(response.json()) == 3

    response = client.get("/api/v1/users", params={"role": "ADMIN"}, headers=headers)
    assert [item["email"] for item in response.json()] == ["admin@school.edu.sg"]


def test_get_user(client, db, admin_user, teacher_user):
    headers = auth_headers(client, "admin@school.edu.sg")

    response = client.get(f"/api/v1/users/{teacher_user.id}", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["email"] == "teacher@school.edu.sg"
    assert "password" not in response.json()

    response = client.get("/api/v1/users/9999", headers=headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_update_grants_principal_capability(client, db, admin_user, teacher_user):
    headers = auth_headers(client, "admin@school.edu.sg")
    teacher_headers = auth_headers(client, "teacher@school.edu.sg")
    assert client.get("/api/v1/leave/approvals", headers=teacher_headers).status_code == status.HTTP_403_FORBIDDEN

    response = client.put(
        f"/api/v1/users/{teacher_user.id}",
        json={"teacherRoles": ["FORM", "PRINCIPAL"], "employmentType": "PART_TIME"},
        headers=headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["teacherRoles"] == ["FORM", "PRINCIPAL"]
    assert data["employmentType"] == "PART_TIME"
    assert data["name"] == "Aisyah Rahman"
    assert client.get("/api/v1/leave/approvals", headers=teacher_headers).status_code == status.HTTP_200_OK

    log = db.query(AuditLog).filter(AuditLog.entity_type == "USER", AuditLog.action == "UPDATE").one()
    assert log.actor_id == str(admin_user.id)
    assert log.entity_id == str(teacher_user.id)
    assert log.details["changed"] == ["employment_type", "teacher_roles"]


def test_update_password_is_not_audited_in_clear(client, db, admin_user, teacher_user):
    response = client.put(
        f"/api/v1/users/{teacher_user.id}",
        json={"password": "reset-4567"},
        headers=auth_headers(client, "admin@school.edu.sg"),
    )
    assert response.status_code == status.HTTP_200_OK

    db.refresh(teacher_user)
    assert verify_password("reset-4567", teacher_user.password_hash)
    log = db.query(AuditLog).filter(AuditLog.action == "UPDATE").one()
    assert "reset-4567" not in str(log.details)


def test_update_rejects_taken_email(client, db, admin_user, teacher_user, principal_user):
    response = client.put(
        f"/api/v1/users/{teacher_user.id}",
        json={"email": "Principal@school.edu.sg"},
        headers=auth_headers(client, "admin@school.edu.sg"),
    )
    assert response.status_code == status.HTTP_409_CONFLICT

    db.refresh(teacher_user)
    assert teacher_user.email == "teacher@school.edu.sg"


def test_update_to_student_requires_level(client, db, admin_user, teacher_user):
    headers = auth_headers(client, "admin@school.edu.sg")

    response = client.put(f"/api/v1/users/{teacher_user.id}", json={"role": "STUDENT"}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Students must have a level assigned"

    response = client.put(
        f"/api/v1/users/{teacher_user.id}", json={"role": "STUDENT", "level": "SECONDARY_2"}, headers=headers
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["role"] == "STUDENT"
    assert data["teacherRoles"] == []
    assert data["employmentType"] is None


def test_update_missing_user(client, db, admin_user):
    response = client.put(
        "/api/v1/users/9999", json={"name": "Ghost"}, headers=auth_headers(client, "admin@school.edu.sg")
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_deactivate_user(client, db, admin_user, teacher_user, principal_user):
    make_submission(db, teacher_user, date(2024, 3, 4), date(2024, 3, 5))
    teacher_token_headers = auth_headers(client, "teacher@school.edu.sg")
    headers = auth_headers(client, "admin@school.edu.sg")

    response = client.delete(f"/api/v1/users/{teacher_user.id}", headers=headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT

    db.refresh(teacher_user)
    assert teacher_user.active is False
    assert len(teacher_user.leave_submissions) == 1

    login = client.post("/api/v1/auth/login", json={"email": "teacher@school.edu.sg", "password": PASSWORD})
    assert login.status_code == status.HTTP_401_UNAUTHORIZED
    assert client.get("/api/v1/leave/balance", headers=teacher_token_headers).status_code == (
        status.HTTP_401_UNAUTHORIZED
    )

    log = db.query(AuditLog).filter(AuditLog.entity_type == "USER", AuditLog.action == "DELETE").one()
    assert log.entity_id == str(teacher_user.id)
    assert log.actor_id == str(admin_user.id)

    # Already inactive: nothing further is recorded
    response = client.delete(f"/api/v1/users/{teacher_user.id}", headers=headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert db.query(AuditLog).filter(AuditLog.action == "DELETE").count() == 1

    history = client.get("/api/v1/leave/all", params={"teacherId": teacher_user.id}, headers=headers)
    assert len(history.json()) == 1


def test_admin_cannot_deactivate_self(client, db, admin_user):
    headers = auth_headers(client, "admin@school.edu.sg")

    response = client.delete(f"/api/v1/users/{admin_user.id}", headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.put(f"/api/v1/users/{admin_user.id}", json={"active": False}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    db.refresh(admin_user)
    assert admin_user.active is True


def test_teacher_cannot_administer_users(client, db, teacher_user, principal_user):
    headers = auth_headers(client, "teacher@school.edu.sg")
    target = f"/api/v1/users/{principal_user.id}"

    assert client.get(target, headers=headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.put(target, json={"name": "X"}, headers=headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.delete(target, headers=headers).status_code == status.HTTP_403_FORBIDDEN
