import pytest
from fastapi import status

from app.core.errors import Conflict, NotFound
from app.models.enums import Role
from app.services import enrollments


@pytest.fixture
def enrolled(seed):
    tenant = seed.tenant()
    employee = seed.account(Role.EMPLOYEE, tenant)
    formation = seed.formation(seed.account(Role.CONTENT_AUTHOR))
    enrollment = seed.enrollment(employee, formation)
    return employee, formation, enrollment


def test_progress_only_moves_forward(db, enrolled, as_actor):
    employee, formation, _ = enrolled
    actor = as_actor(employee)

    assert enrollments.update_progress(db, actor, formation.id, 40).progress == 40
    with pytest.raises(Conflict):
        enrollments.update_progress(db, actor, formation.id, 30)

    db.expire_all()
    assert enrollments.find_enrollment(db, employee.id, formation.id).progress == 40


def test_same_value_is_a_noop_success(db, enrolled, as_actor):
    employee, formation, _ = enrolled
    actor = as_actor(employee)

    enrollments.update_progress(db, actor, formation.id, 60)
    assert enrollments.update_progress(db, actor, formation.id, 60).progress == 60


def test_completed_at_is_stamped_once(db, enrolled, as_actor):
    employee, formation, _ = enrolled
    actor = as_actor(employee)

    first = enrollments.update_progress(db, actor, formation.id, 100)
    stamped = first.completed_at
    assert stamped is not None

    again = enrollments.update_progress(db, actor, formation.id, 100)
    assert again.completed_at == stamped


def test_two_sessions_cannot_lower_progress(session_factory, enrolled, as_actor):
    employee, formation, _ = enrolled
    actor = as_actor(employee)
    fast, slow = session_factory(), session_factory()
    try:
        enrollments.find_enrollment(slow, employee.id, formation.id)
        enrollments.update_progress(fast, actor, formation.id, 90)
        with pytest.raises(Conflict):
            enrollments.update_progress(slow, actor, formation.id, 50)
    finally:
        fast.close()
        slow.close()


def test_unenrolled_formation_is_not_found(db, seed, as_actor):
    employee = seed.account(Role.EMPLOYEE, seed.tenant())
    formation = seed.formation(seed.account(Role.CONTENT_AUTHOR))

    with pytest.raises(NotFound):
        enrollments.update_progress(db, as_actor(employee), formation.id, 10)


def test_progress_over_http(client, enrolled, auth_headers):
    employee, formation, enrollment = enrolled

    response = client.put(
        f"/formations/{formation.id}/progress",
        json={"progress": 100},
        headers=auth_headers(employee),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["completed_at"] is not None

    lower = client.put(
        f"/formations/{formation.id}/progress",
        json={"progress": 10},
        headers=auth_headers(employee),
    )
    assert lower.status_code == status.HTTP_409_CONFLICT

    invalid = client.put(
        f"/formations/{formation.id}/progress",
        json={"progress": 101},
        headers=auth_headers(employee),
    )
    assert invalid.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_enrollment_visibility_follows_learner_tenant(client, seed, auth_headers):
    tenant = seed.tenant()
    employee = seed.account(Role.EMPLOYEE, tenant)
    colleague = seed.account(Role.EMPLOYEE, tenant)
    admin = seed.account(Role.TENANT_ADMIN, tenant)
    other_admin = seed.account(Role.TENANT_ADMIN, seed.tenant(name="Other"))
    enrollment = seed.enrollment(employee, seed.formation(seed.account(Role.CONTENT_AUTHOR)))
    url = f"/enrollments/{enrollment.id}"

    assert client.get(url, headers=auth_headers(employee)).status_code == status.HTTP_200_OK
    assert client.get(url, headers=auth_headers(admin)).status_code == status.HTTP_200_OK
    assert client.get(url, headers=auth_headers(other_admin)).status_code == status.HTTP_404_NOT_FOUND
    assert client.get(url, headers=auth_headers(colleague)).status_code == status.HTTP_404_NOT_FOUND
