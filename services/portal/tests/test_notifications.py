from fastapi import status

from app.models.enums import Role
from app.services.notifications import notify, send_email


def _seed_notifications(db, account, count=3):
    return [notify(db, account.id, "info", f"Aviso {index}", "Mensagem") for index in range(count)]


def test_list_reports_unread_count(client, seed, auth_headers, db):
    employee = seed.account(Role.EMPLOYEE, seed.tenant())
    _seed_notifications(db, employee)

    response = client.get("/notifications", headers=auth_headers(employee))
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert len(body["notifications"]) == 3
    assert body["unread_count"] == 3


def test_mark_one_and_all_as_read(client, seed, auth_headers, db):
    employee = seed.account(Role.EMPLOYEE, seed.tenant())
    first, *_ = _seed_notifications(db, employee)

    response = client.patch(
        "/notifications",
        json={"notification_id": str(first.id)},
        headers=auth_headers(employee),
    )
    assert response.status_code == status.HTTP_200_OK
    assert client.get("/notifications", headers=auth_headers(employee)).json()["unread_count"] == 2

    response = client.patch("/notifications", json={"mark_all_as_read": True}, headers=auth_headers(employee))
    assert response.json()["count"] == 2

    unread = client.get("/notifications?unread=true", headers=auth_headers(employee)).json()
    assert unread == {"notifications": [], "unread_count": 0}


def test_mark_requires_a_target(client, seed, auth_headers):
    employee = seed.account(Role.EMPLOYEE, seed.tenant())
    response = client.patch("/notifications", json={}, headers=auth_headers(employee))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_foreign_notification_is_not_found(client, seed, auth_headers, db):
    owner = seed.account(Role.EMPLOYEE, seed.tenant())
    super_admin = seed.account(Role.SUPER_ADMIN)
    foreign = notify(db, owner.id, "info", "Privado", "Mensagem")

    read = client.patch(
        "/notifications",
        json={"notification_id": str(foreign.id)},
        headers=auth_headers(super_admin),
    )
    assert read.status_code == status.HTTP_404_NOT_FOUND

    dismissed = client.delete(f"/notifications?id={foreign.id}", headers=auth_headers(super_admin))
    assert dismissed.status_code == status.HTTP_404_NOT_FOUND


def test_dismiss_one_and_all(client, seed, auth_headers, db):
    employee = seed.account(Role.EMPLOYEE, seed.tenant())
    first, *_ = _seed_notifications(db, employee)

    response = client.delete(f"/notifications?id={first.id}", headers=auth_headers(employee))
    assert response.json()["count"] == 1

    response = client.delete("/notifications?delete_all=true", headers=auth_headers(employee))
    assert response.json()["count"] == 2
    assert client.get("/notifications", headers=auth_headers(employee)).json()["notifications"] == []


def test_send_email_without_publisher_only_logs():
    send_email(None, "welcome", {"to": "someone@example.com"})


def test_send_email_publishes_on_stream():
    published = []

    class RecordingPublisher:
        def publish(self, event_type, payload, metadata=None):
            published.append((event_type, payload, metadata))

    send_email(RecordingPublisher(), "welcome", {"to": "someone@example.com"}, tenant_id="t-1")

    assert published == [("email.welcome", {"to": "someone@example.com"}, {"tenant_id": "t-1"})]
