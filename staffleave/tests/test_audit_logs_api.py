"""
Tests for audit log endpoints
"""
from datetime import timedelta, timezone

from fastapi import status

from staffleave.models import AuditLog
from staffleave.services import audit_service
from staffleave.tests.helpers import auth_headers
from staffleave.utils.datetime_utils import now_utc


def _seed(db, count):
    for i in range(count):
        audit_service.log_activity(
            db, action="UPDATE", entity_id=i, entity_type="LEAVE_SUBMISSION", actor_name="Seeder"
        )


def test_list_audit_logs_paginates_newest_first(client, db, admin_user):
    _seed(db, 12)
    headers = auth_headers(client, "admin@school.edu.sg")

    response = client.get("/api/v1/audit-logs", params={"page": 1, "limit": 5}, headers=headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    # 12 seeded + 1 login
    assert data["pagination"] == {"total": 13, "pages": 3, "page": 1, "limit": 5}
    assert len(data["logs"]) == 5
    assert data["logs"][0]["action"] == "LOGIN"
    assert "entityId" in data["logs"][0]


def test_list_audit_logs_filters(client, db, admin_user):
    _seed(db, 3)
    headers = auth_headers(client, "admin@school.edu.sg")

    response = client.get("/api/v1/audit-logs", params={"action": "UPDATE"}, headers=headers)
    assert response.json()["pagination"]["total"] == 3

    response = client.get("/api/v1/audit-logs", params={"role": "ADMIN"}, headers=headers)
    assert response.json()["pagination"]["total"] == 1

    response = client.get("/api/v1/audit-logs", params={"search": "seed"}, headers=headers)
    assert response.json()["pagination"]["total"] == 3


def test_audit_logs_admin_only(client, db, teacher_user):
    response = client.get("/api/v1/audit-logs", headers=auth_headers(client, "teacher@school.edu.sg"))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_export_csv_is_audited(client, db, admin_user):
    _seed(db, 2)
    headers = auth_headers(client, "admin@school.edu.sg")

    response = client.get("/api/v1/audit-logs/export", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    lines = response.text.strip().splitlines()
    assert lines[0] == ",".join(audit_service.AUDIT_EXPORT_HEADERS)
    # 2 seeded + 1 login; the export entry is written after the rows are read
    assert len(lines) == 4

    assert db.query(AuditLog).filter(AuditLog.action == "EXPORT").count() == 1


def test_audit_logs_created_window_with_offset(client, db, admin_user):
    headers = auth_headers(client, "admin@school.edu.sg")
    plus_eight = timezone(timedelta(hours=8))
    an_hour_ago = (now_utc() - timedelta(hours=1)).astimezone(plus_eight)
    in_an_hour = (now_utc() + timedelta(hours=1)).astimezone(plus_eight)

    response = client.get("/api/v1/audit-logs", params={"startDate": an_hour_ago.isoformat()}, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["pagination"]["total"] == 1

    response = client.get(
        "/api/v1/audit-logs",
        params={"startDate": an_hour_ago.isoformat(), "endDate": in_an_hour.isoformat()},
        headers=headers,
    )
    assert response.json()["pagination"]["total"] == 1

    response = client.get("/api/v1/audit-logs", params={"startDate": in_an_hour.isoformat()}, headers=headers)
    assert response.json()["pagination"]["total"] == 0


def test_audit_log_search_matches_wildcards_literally(client, db, admin_user):
    _seed(db, 2)
    audit_service.log_activity(db, action="UPDATE", entity_id="100%", entity_type="USER", actor_name="Seeder")
    headers = auth_headers(client, "admin@school.edu.sg")

    response = client.get("/api/v1/audit-logs", params={"search": "_"}, headers=headers)
    assert response.json()["pagination"]["total"] == 0

    response = client.get("/api/v1/audit-logs", params={"search": "%"}, headers=headers)
    data = response.json()
    assert data["pagination"]["total"] == 1
    assert data["logs"][0]["entityId"] == "100%"
