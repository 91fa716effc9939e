from fastapi import status

from app.models.enums import Role, SubscriptionStatus
from app.models.formation import Enrollment, Formation
from app.models.notification import Notification


def test_author_builds_formation_and_super_admin_activates_it(client, seed, auth_headers, db):
    author = seed.account(Role.CONTENT_AUTHOR)
    super_admin = seed.account(Role.SUPER_ADMIN)

    created = client.post(
        "/formations",
        json={"title": "Gestão do stress", "description": "Três módulos"},
        headers=auth_headers(author),
    )
    assert created.status_code == status.HTTP_201_CREATED
    formation = created.json()
    assert formation["is_active"] is False

    section = client.post(
        f"/formations/{formation['id']}/sections",
        json={"title": "Introdução"},
        headers=auth_headers(author),
    )
    assert section.status_code == status.HTTP_201_CREATED
    assert section.json()["position"] == 0

    lesson = client.post(
        f"/sections/{section.json()['id']}/lessons",
        json={"title": "Boas-vindas", "lesson_type": "VIDEO", "video_asset_id": "asset-1"},
        headers=auth_headers(author),
    )
    assert lesson.status_code == status.HTTP_201_CREATED
    assert lesson.json()["is_published"] is False

    published = client.patch(f"/lessons/{lesson.json()['id']}/publish", headers=auth_headers(author))
    assert published.status_code == status.HTTP_200_OK
    assert published.json()["is_published"] is True

    denied = client.patch(f"/formations/{formation['id']}/toggle-active", headers=auth_headers(author))
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    toggled = client.patch(f"/formations/{formation['id']}/toggle-active", headers=auth_headers(super_admin))
    assert toggled.status_code == status.HTTP_200_OK
    assert toggled.json()["is_active"] is True

    notified = db.query(Notification).filter(Notification.account_id == author.id).all()
    assert [n.type for n in notified] == ["formation_status"]


def test_other_author_cannot_edit_formation(client, seed, auth_headers):
    owner = seed.account(Role.CONTENT_AUTHOR)
    intruder = seed.account(Role.CONTENT_AUTHOR)
    formation = seed.formation(owner)

    response = client.put(
        f"/formations/{formation.id}",
        json={"title": "Hijacked"},
        headers=auth_headers(intruder),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.put(
        f"/formations/{formation.id}",
        json={"title": "Renamed"},
        headers=auth_headers(owner),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == "Renamed"


def test_null_title_is_rejected_as_invalid(client, seed, auth_headers, db):
    owner = seed.account(Role.CONTENT_AUTHOR)
    formation = seed.formation(owner, title="Original")

    response = client.put(
        f"/formations/{formation.id}",
        json={"title": None, "description": "nova"},
        headers=auth_headers(owner),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    db.expire_all()
    stored = db.query(Formation).filter(Formation.id == formation.id).first()
    assert stored.title == "Original"
    assert stored.description is None

    cleared = client.put(
        f"/formations/{formation.id}",
        json={"description": None},
        headers=auth_headers(owner),
    )
    assert cleared.status_code == status.HTTP_200_OK


def test_employee_cannot_create_formation(client, seed, auth_headers):
    employee = seed.account(Role.EMPLOYEE, seed.tenant())
    response = client.post("/formations", json={"title": "X"}, headers=auth_headers(employee))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_admin_assigns_active_formation_idempotently(client, seed, auth_headers, db):
    tenant = seed.tenant()
    admin = seed.account(Role.TENANT_ADMIN, tenant)
    employee = seed.account(Role.EMPLOYEE, tenant)
    formation = seed.formation(seed.account(Role.CONTENT_AUTHOR))

    for _ in range(2):
        response = client.post(
            f"/formations/{formation.id}/assign",
            json={"account_ids": [str(employee.id)]},
            headers=auth_headers(admin),
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()[0]["progress"] == 0

    assert db.query(Enrollment).filter(Enrollment.account_id == employee.id).count() == 1

    mine = client.get("/formations/enrollments/me", headers=auth_headers(employee))
    assert mine.status_code == status.HTTP_200_OK
    assert [item["formation_id"] for item in mine.json()] == [str(formation.id)]


def test_inactive_formation_cannot_be_assigned(client, seed, auth_headers):
    tenant = seed.tenant()
    admin = seed.account(Role.TENANT_ADMIN, tenant)
    employee = seed.account(Role.EMPLOYEE, tenant)
    formation = seed.formation(seed.account(Role.CONTENT_AUTHOR), active=False)

    response = client.post(
        f"/formations/{formation.id}/assign",
        json={"account_ids": [str(employee.id)]},
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_unentitled_tenant_cannot_assign(client, seed, auth_headers):
    tenant = seed.tenant(status=SubscriptionStatus.UNPAID)
    admin = seed.account(Role.TENANT_ADMIN, tenant)
    employee = seed.account(Role.EMPLOYEE, tenant)
    formation = seed.formation(seed.account(Role.CONTENT_AUTHOR))

    response = client.post(
        f"/formations/{formation.id}/assign",
        json={"account_ids": [str(employee.id)]},
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_cannot_assign_employees_of_another_tenant(client, seed, auth_headers):
    tenant = seed.tenant()
    admin = seed.account(Role.TENANT_ADMIN, tenant)
    outsider = seed.account(Role.EMPLOYEE, seed.tenant(name="Other"))
    formation = seed.formation(seed.account(Role.CONTENT_AUTHOR))

    response = client.post(
        f"/formations/{formation.id}/assign",
        json={"account_ids": [str(outsider.id)]},
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
