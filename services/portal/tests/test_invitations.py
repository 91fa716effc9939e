from datetime import timedelta

import pytest
from fastapi import status

from app.core.errors import Conflict, Forbidden, NotFound
from app.core.security import utcnow
from app.models.account import Account
from app.models.enums import PlanTier, Role, SubscriptionStatus
from app.models.invitation import Invitation
from app.services import invitations


def test_admin_invites_and_employee_accepts(client, seed, auth_headers, db):
    tenant = seed.tenant()
    admin = seed.account(Role.TENANT_ADMIN, tenant)

    response = client.post(
        f"/companies/{tenant.id}/invitations",
        json={"email": "New.Hire@Example.com", "role": "EMPLOYEE"},
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_201_CREATED
    issued = response.json()
    assert issued["email"] == "new.hire@example.com"
    assert issued["token"] in issued["invite_url"]
    assert len(issued["token"]) == 64

    preview = client.get(f"/invitations/{issued['token']}")
    assert preview.status_code == status.HTTP_200_OK
    assert preview.json()["company_name"] == "Acme"

    accepted = client.post(
        "/invitations/accept",
        json={"token": issued["token"], "name": "New Hire", "password": "senha-forte"},
    )
    assert accepted.status_code == status.HTTP_201_CREATED
    body = accepted.json()
    assert body["account"]["role"] == "EMPLOYEE"
    assert body["account"]["tenant_id"] == str(tenant.id)
    assert body["access_token"]

    again = client.post(
        "/invitations/accept",
        json={"token": issued["token"], "name": "Someone", "password": "senha-forte"},
    )
    assert again.status_code == status.HTTP_409_CONFLICT

    stored = db.query(Invitation).filter(Invitation.token == issued["token"]).one()
    assert stored.accepted_at is not None
    assert stored.live_key is None


def test_employee_cannot_invite(client, seed, auth_headers):
    tenant = seed.tenant()
    employee = seed.account(Role.EMPLOYEE, tenant)

    response = client.post(
        f"/companies/{tenant.id}/invitations",
        json={"email": "x@example.com"},
        headers=auth_headers(employee),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_admin_of_other_tenant_gets_not_found(client, seed, auth_headers):
    tenant = seed.tenant()
    other_admin = seed.account(Role.TENANT_ADMIN, seed.tenant(name="Other"))

    response = client.post(
        f"/companies/{tenant.id}/invitations",
        json={"email": "x@example.com"},
        headers=auth_headers(other_admin),
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_unentitled_tenant_cannot_invite(client, seed, auth_headers):
    tenant = seed.tenant(status=SubscriptionStatus.PAST_DUE)
    admin = seed.account(Role.TENANT_ADMIN, tenant)

    response = client.post(
        f"/companies/{tenant.id}/invitations",
        json={"email": "x@example.com"},
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_platform_roles_cannot_be_invited(client, seed, auth_headers):
    tenant = seed.tenant()
    admin = seed.account(Role.TENANT_ADMIN, tenant)

    response = client.post(
        f"/companies/{tenant.id}/invitations",
        json={"email": "x@example.com", "role": "SUPER_ADMIN"},
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_second_live_invitation_for_same_email_conflicts(db, seed, as_actor, accounts_settings):
    tenant = seed.tenant()
    admin = seed.account(Role.TENANT_ADMIN, tenant)

    invitations.issue_invitation(db, as_actor(admin), tenant.id, "dup@example.com", Role.EMPLOYEE, accounts_settings)
    with pytest.raises(Conflict):
        invitations.issue_invitation(
            db, as_actor(admin), tenant.id, "DUP@example.com", Role.EMPLOYEE, accounts_settings
        )


def test_expired_invitation_can_be_reissued(db, seed, as_actor, accounts_settings):
    tenant = seed.tenant()
    admin = seed.account(Role.TENANT_ADMIN, tenant)
    past = utcnow() - timedelta(days=8)

    old = invitations.issue_invitation(
        db, as_actor(admin), tenant.id, "late@example.com", Role.EMPLOYEE, accounts_settings, now=past
    )
    fresh = invitations.issue_invitation(
        db, as_actor(admin), tenant.id, "late@example.com", Role.EMPLOYEE, accounts_settings
    )

    db.refresh(old)
    assert old.live_key is None
    assert fresh.live_key is not None
    assert fresh.token != old.token


def test_expired_invitation_is_not_found(client, db, seed, as_actor, accounts_settings):
    tenant = seed.tenant()
    admin = seed.account(Role.TENANT_ADMIN, tenant)
    expired = invitations.issue_invitation(
        db,
        as_actor(admin),
        tenant.id,
        "late@example.com",
        Role.EMPLOYEE,
        accounts_settings,
        now=utcnow() - timedelta(days=8),
    )

    assert client.get(f"/invitations/{expired.token}").status_code == status.HTTP_404_NOT_FOUND
    response = client.post(
        "/invitations/accept",
        json={"token": expired.token, "name": "Late", "password": "senha-forte"},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert db.query(Account).filter(Account.email == "late@example.com").count() == 0


def test_unknown_token_is_not_found(client):
    assert client.get("/invitations/does-not-exist").status_code == status.HTTP_404_NOT_FOUND


def test_existing_account_cannot_be_invited(db, seed, as_actor, accounts_settings):
    tenant = seed.tenant()
    admin = seed.account(Role.TENANT_ADMIN, tenant)
    seed.account(Role.EMPLOYEE, tenant, email="taken@example.com")

    with pytest.raises(Conflict):
        invitations.issue_invitation(db, as_actor(admin), tenant.id, "taken@example.com", Role.EMPLOYEE, accounts_settings)


def test_seat_cap_counts_accounts_and_pending_invitations(db, seed, as_actor, accounts_settings):
    tenant = seed.tenant(plan=PlanTier.ESSENTIEL)
    admin = seed.account(Role.TENANT_ADMIN, tenant)
    for _ in range(20):
        seed.account(Role.EMPLOYEE, tenant)
    for index in range(4):
        invitations.issue_invitation(
            db, as_actor(admin), tenant.id, f"pending{index}@example.com", Role.EMPLOYEE, accounts_settings
        )

    with pytest.raises(Forbidden):
        invitations.issue_invitation(db, as_actor(admin), tenant.id, "one-too-many@example.com", Role.EMPLOYEE, accounts_settings)


def test_concurrent_acceptances_produce_one_account(session_factory, db, seed, as_actor, accounts_settings):
    tenant = seed.tenant()
    admin = seed.account(Role.TENANT_ADMIN, tenant)
    invitation = invitations.issue_invitation(
        db, as_actor(admin), tenant.id, "race@example.com", Role.EMPLOYEE, accounts_settings
    )

    first = session_factory()
    second = session_factory()
    try:
        # a segunda sessão já leu o convite como ISSUED antes da primeira aceitar
        invitations.get_invitation_by_token(second, invitation.token)

        account = invitations.accept_invitation(first, invitation.token, "First", "senha-forte")
        with pytest.raises(Conflict):
            invitations.accept_invitation(second, invitation.token, "Second", "senha-forte")
    finally:
        first.close()
        second.close()

    db.expire_all()
    assert db.query(Account).filter(Account.email == "race@example.com").count() == 1
    stored = db.query(Invitation).filter(Invitation.id == invitation.id).one()
    assert stored.account_id == account.id


def test_accept_with_missing_token_is_not_found(db):
    with pytest.raises(NotFound):
        invitations.accept_invitation(db, "nope", "Name", "senha-forte")
