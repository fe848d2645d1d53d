from datetime import datetime, timedelta, timezone

import pytest

from storefront.auth.passwords import hash_password, verify_password
from storefront.config import settings
from storefront.errors import EmailTaken, PasswordTooLong
from storefront.models.user import User
from storefront.repositories.user_repo import UserRepository
from storefront.services.credential_service import CredentialService


def _signup(client, email="Wes@Example.COM", password="hunter2", name="Wes"):
    return client.post("/api/auth/signup", json={"email": email, "password": password, "name": name})


def test_signup_normalizes_email_and_grants_user_permission(client, db):
    res = _signup(client)
    assert res.status_code == 200
    body = res.json()
    assert body["email"] == "wes@example.com"
    assert body["permissions"] == ["USER"]

    user = db.query(User).filter(User.email == "wes@example.com").one()
    assert user.password != "hunter2"
    assert user.password.startswith("$2")


def test_signup_sets_long_lived_http_only_cookie(client):
    res = _signup(client)
    cookie = res.headers["set-cookie"]
    assert cookie.startswith(f"{settings.SESSION_COOKIE_NAME}=")
    assert "HttpOnly" in cookie
    assert f"Max-Age={365 * 24 * 60 * 60}" in cookie


def test_signup_rejects_taken_email(client):
    _signup(client)
    res = _signup(client, email="WES@example.com")
    assert res.status_code == 409


def test_me_after_signup_and_anonymous(client):
    _signup(client)
    assert client.get("/api/auth/me").json()["email"] == "wes@example.com"
    client.cookies.clear()
    res = client.get("/api/auth/me")
    assert res.status_code == 200
    assert res.json() is None


def test_invalid_cookie_is_anonymous(client):
    client.cookies.set(settings.SESSION_COOKIE_NAME, "garbage")
    res = client.get("/api/auth/me")
    assert res.status_code == 200
    assert res.json() is None


def test_signin_any_casing(client, make_user):
    make_user("ann@example.com")
    res = client.post("/api/auth/signin", json={"email": "ANN@example.com", "password": "hunter2"})
    assert res.status_code == 200
    assert "set-cookie" in res.headers


def test_signin_wrong_password_gives_no_token(client, make_user):
    make_user("ann@example.com")
    res = client.post("/api/auth/signin", json={"email": "ann@example.com", "password": "nope"})
    assert res.status_code == 401
    assert "set-cookie" not in res.headers


def test_signin_unknown_email_looks_like_wrong_password(client, make_user):
    make_user("ann@example.com")
    wrong_pw = client.post("/api/auth/signin", json={"email": "ann@example.com", "password": "nope"})
    unknown = client.post("/api/auth/signin", json={"email": "bob@example.com", "password": "nope"})
    assert unknown.status_code == wrong_pw.status_code == 401
    assert unknown.json() == wrong_pw.json()


def test_signout_is_repeatable(client):
    _signup(client)
    for _ in range(3):
        res = client.post("/api/auth/signout")
        assert res.status_code == 200
        assert res.json() == {"message": "Goodbye!"}


def test_signout_revokes_presented_token(client, make_user, client_for):
    user = make_user("ann@example.com")
    c = client_for(user)
    token = c.cookies.get(settings.SESSION_COOKIE_NAME)
    assert c.get("/api/auth/me").json()["id"] == user.id

    c.post("/api/auth/signout")

    # replaying the old token directly no longer authenticates
    c.cookies.set(settings.SESSION_COOKIE_NAME, token)
    assert c.get("/api/auth/me").json() is None


def test_request_reset_unknown_email(client, db, mailer, make_user):
    make_user("ann@example.com")
    res = client.post("/api/auth/request-reset", json={"email": "bob@example.com"})
    assert res.status_code == 404
    assert mailer.outbox == []
    assert db.query(User).filter(User.reset_token.isnot(None)).count() == 0


def test_request_reset_stores_token_and_mails_link(client, db, mailer, make_user):
    make_user("ann@example.com")
    res = client.post("/api/auth/request-reset", json={"email": "ann@example.com"})
    assert res.status_code == 200
    assert res.json() == {"message": "Thanks!"}

    db.expire_all()
    user = db.query(User).filter(User.email == "ann@example.com").one()
    assert len(user.reset_token) == 40
    assert user.reset_token_expiry is not None
    assert len(mailer.outbox) == 1
    sent = mailer.outbox[0]
    assert sent["to"] == "ann@example.com"
    assert f"/reset?resetToken={user.reset_token}" in sent["html"]


def _with_reset_token(db, user, token="a" * 40, expiry=None):
    user.reset_token = token
    user.reset_token_expiry = expiry or datetime.now(timezone.utc) + timedelta(hours=1)
    db.commit()
    return token


def test_reset_password_mismatch(client, db, make_user):
    token = _with_reset_token(db, make_user("ann@example.com"))
    res = client.post(
        "/api/auth/reset-password",
        json={"reset_token": token, "password": "new", "confirm_password": "other"},
    )
    assert res.status_code == 400
    assert "match" in res.json()["detail"]


def test_reset_password_rejects_long_expired_token(client, db, make_user):
    user = make_user("ann@example.com")
    token = _with_reset_token(db, user, expiry=datetime.now(timezone.utc) - timedelta(hours=2))
    res = client.post(
        "/api/auth/reset-password",
        json={"reset_token": token, "password": "new", "confirm_password": "new"},
    )
    assert res.status_code == 400
    assert "invalid or expired" in res.json()["detail"]


def test_reset_password_accepts_expiry_within_grace_hour(client, db, make_user):
    user = make_user("ann@example.com")
    token = _with_reset_token(db, user, expiry=datetime.now(timezone.utc) - timedelta(minutes=30))
    res = client.post(
        "/api/auth/reset-password",
        json={"reset_token": token, "password": "new", "confirm_password": "new"},
    )
    assert res.status_code == 200


def test_reset_password_unknown_token(client, db, make_user):
    _with_reset_token(db, make_user("ann@example.com"))
    res = client.post(
        "/api/auth/reset-password",
        json={"reset_token": "b" * 40, "password": "new", "confirm_password": "new"},
    )
    assert res.status_code == 400


def test_reset_password_success(client, db, make_user):
    user = make_user("ann@example.com")
    token = _with_reset_token(db, user)
    res = client.post(
        "/api/auth/reset-password",
        json={"reset_token": token, "password": "brand-new", "confirm_password": "brand-new"},
    )
    assert res.status_code == 200
    assert "set-cookie" in res.headers

    db.expire_all()
    user = db.get(User, user.id)
    assert user.reset_token is None
    assert user.reset_token_expiry is None

    assert client.post("/api/auth/signin", json={"email": "ann@example.com", "password": "brand-new"}).status_code == 200
    assert client.post("/api/auth/signin", json={"email": "ann@example.com", "password": "hunter2"}).status_code == 401

    # the token is single use
    again = client.post(
        "/api/auth/reset-password",
        json={"reset_token": token, "password": "x", "confirm_password": "x"},
    )
    assert again.status_code == 400


def test_signup_rejects_password_longer_than_bcrypt_reads(client, db):
    res = _signup(client, password="x" * 100)
    assert res.status_code == 422
    assert db.query(User).count() == 0

    # the limit is in bytes, not characters
    assert _signup(client, password="é" * 40).status_code == 422
    assert _signup(client, password="x" * 72).status_code == 200


def test_reset_password_rejects_overlong_password(client, db, make_user):
    token = _with_reset_token(db, make_user("ann@example.com"))
    res = client.post(
        "/api/auth/reset-password",
        json={"reset_token": token, "password": "x" * 100, "confirm_password": "x" * 100},
    )
    assert res.status_code == 422


def test_overlong_password_never_hashes_or_matches():
    with pytest.raises(PasswordTooLong):
        hash_password("x" * 73, rounds=4)
    stored = hash_password("x" * 72, rounds=4)
    assert verify_password("x" * 72, stored)
    assert not verify_password("x" * 73, stored)


def test_concurrent_signup_with_same_email_is_email_taken(db, codec, mailer, make_user, monkeypatch):
    make_user("ann@example.com")
    # the other request inserted between our lookup and our commit
    monkeypatch.setattr(UserRepository, "get_by_email", lambda self, email: None)

    with pytest.raises(EmailTaken):
        CredentialService(db, codec, mailer).signup("ann@example.com", "hunter2")

    assert db.query(User).filter(User.email == "ann@example.com").count() == 1
