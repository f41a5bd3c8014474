import time
from datetime import datetime, timedelta, timezone

import jwt

from conftest import TEST_PASSWORD, auth_headers, register
from roommate_finder.models.user import User
from roommate_finder.services.auth_service import create_access_token, decode_access_token


def _stored_user(client, email):
    async def _find():
        return await User.find_one(User.email == email)

    return client.portal.call(_find)


def test_register_returns_token_and_public_fields(client, settings):
    response = register(client, name="  Alex Doe ", email="  Alex@Example.COM ")

    assert response.status_code == 201
    payload = response.json()
    assert payload["success"] is True
    assert payload["user"]["name"] == "Alex Doe"
    assert payload["user"]["email"] == "alex@example.com"
    assert set(payload["user"]) == {"id", "name", "email"}
    assert str(decode_access_token(payload["token"], settings)) == payload["user"]["id"]


def test_register_never_stores_plaintext_password(client):
    register(client, email="hash@example.com", password="  hunter22  ")

    user = _stored_user(client, "hash@example.com")
    assert user.password_hash != "hunter22"
    assert user.password_hash.startswith("$2")


def test_register_rejects_duplicate_email_any_case(client):
    assert register(client, email="dup@example.com").status_code == 201

    response = register(client, email="DUP@Example.com")

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "User already exists"}


def test_register_requires_all_fields(client):
    response = client.post("/api/users/register", json={"name": "   ", "email": "a@example.com", "password": "x"})

    assert response.status_code == 400
    assert response.json()["message"] == "Please provide name, email and password"


def test_register_rejects_bad_email_and_short_password(client):
    bad_email = register(client, email="not-an-email")
    short_password = register(client, email="short@example.com", password="abc")

    assert bad_email.status_code == 400
    assert bad_email.json()["message"] == "Please add a valid email"
    assert short_password.status_code == 400
    assert short_password.json()["message"] == "Password must be at least 6 characters"


def test_register_rejects_non_object_body(client):
    response = client.post("/api/users/register", json=["name", "email"])

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid request body"}


def test_login_with_correct_credentials_returns_token_for_same_user(client, settings):
    user_id = register(client, email="login@example.com").json()["user"]["id"]

    response = client.post("/api/users/login", json={"email": " LOGIN@example.com", "password": TEST_PASSWORD})

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert str(decode_access_token(payload["token"], settings)) == user_id


def test_login_failures_are_indistinguishable(client):
    register(client, email="known@example.com")

    wrong_password = client.post("/api/users/login", json={"email": "known@example.com", "password": "wrong-pass"})
    unknown_email = client.post("/api/users/login", json={"email": "nobody@example.com", "password": TEST_PASSWORD})

    assert wrong_password.status_code == unknown_email.status_code == 400
    assert wrong_password.json() == unknown_email.json() == {"success": False, "message": "Invalid credentials"}


def test_login_requires_email_and_password(client):
    response = client.post("/api/users/login", json={"email": "someone@example.com"})

    assert response.status_code == 400
    assert response.json()["message"] == "Please provide email and password"


def test_profile_requires_token(client):
    response = client.get("/api/users/profile")

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Not authorized, no token"}


def test_profile_rejects_token_signed_with_wrong_key(client, seed_user):
    user, _ = seed_user("mallory@example.com")
    forged = jwt.encode({"sub": str(user.id)}, "some-other-secret", algorithm="HS256")

    response = client.get("/api/users/profile", headers=auth_headers(forged))

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_profile_rejects_expired_token(client, seed_user, settings):
    user, _ = seed_user("late@example.com")
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    expired = jwt.encode(
        {"sub": str(user.id), "iat": past, "exp": past + timedelta(minutes=1)},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )

    response = client.get("/api/users/profile", headers=auth_headers(expired))

    assert response.status_code == 401
    assert response.json()["message"] == "Token has expired"


def test_profile_rejects_malformed_token(client):
    response = client.get("/api/users/profile", headers=auth_headers("not.a.jwt"))

    assert response.status_code == 401


def test_profile_rejects_token_for_deleted_user(client, seed_user):
    user, token = seed_user("gone@example.com")

    async def _delete():
        await user.delete()

    client.portal.call(_delete)
    response = client.get("/api/users/profile", headers=auth_headers(token))

    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized, user not found"


def test_access_token_carries_configured_expiry(settings):
    token = create_access_token("65a000000000000000000001", settings)

    claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    assert claims["sub"] == "65a000000000000000000001"
    assert claims["exp"] - claims["iat"] == settings.jwt_expires_in_minutes * 60


def test_register_rejects_near_miss_email_promptly(client):
    started = time.monotonic()

    response = register(client, email="a" * 40 + "!")
    overlong = register(client, email="a" * 250 + "@example.com")

    assert response.status_code == 400
    assert response.json()["message"] == "Please add a valid email"
    assert overlong.status_code == 400
    assert time.monotonic() - started < 5


def test_register_accepts_long_top_level_domains(client):
    info = register(client, email="jamie@example.info")
    nested = register(client, email="jamie@mail.company.email")

    assert info.status_code == 201
    assert nested.status_code == 201
    assert nested.json()["user"]["email"] == "jamie@mail.company.email"
