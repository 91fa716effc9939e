from uuid import UUID

from fastapi import status

from app.models.enums import Role
from app.models.tenant import Subscription


def test_signup_creates_company_with_unpaid_subscription(client, db):
    response = client.post(
        "/auth/signup",
        json={
            "company_name": "Acme Formations",
            "name": "Marie Dupont",
            "email": "Marie.Dupont@Acme.fr",
            "password": "senha-forte",
            "plan": "PRO",
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["access_token"]
    assert body["account"]["role"] == "TENANT_ADMIN"
    assert body["account"]["email"] == "marie.dupont@acme.fr"

    tenant_id = UUID(body["account"]["tenant_id"])
    subscription = db.query(Subscription).filter(Subscription.tenant_id == tenant_id).one()
    assert subscription.status == "UNPAID"
    assert subscription.plan == "PRO"


def test_signup_with_taken_email_conflicts(client, seed):
    seed.account(Role.EMPLOYEE, seed.tenant(), email="taken@example.com")

    response = client.post(
        "/auth/signup",
        json={"company_name": "Dup", "name": "Dup", "email": "taken@example.com", "password": "senha-forte"},
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_login_and_me(client, seed):
    tenant = seed.tenant()
    seed.account(Role.EMPLOYEE, tenant, email="login@example.com", password="senha-forte")

    login = client.post("/auth/login", data={"username": "login@example.com", "password": "senha-forte"})
    assert login.status_code == status.HTTP_200_OK
    token = login.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["email"] == "login@example.com"
    assert me.json()["tenant_id"] == str(tenant.id)


def test_login_with_wrong_password_is_unauthorized(client, seed):
    seed.account(Role.EMPLOYEE, seed.tenant(), email="login@example.com", password="senha-forte")

    response = client.post("/auth/login", data={"username": "login@example.com", "password": "errada"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_invalid_or_missing_token_is_unauthorized(client):
    assert client.get("/auth/me").status_code == status.HTTP_401_UNAUTHORIZED
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_token_for_deleted_account_is_not_found(client, seed, auth_headers, db):
    account = seed.account(Role.EMPLOYEE, seed.tenant())
    headers = auth_headers(account)
    db.delete(account)
    db.commit()

    assert client.get("/auth/me", headers=headers).status_code == status.HTTP_404_NOT_FOUND
