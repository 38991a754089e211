"""Tests for authentication endpoints."""

import uuid

import pytest
from app.services.auth import hash_password, verify_password
from app.models.business import Business, BusinessSettings
from app.models.user import User
from sqlalchemy import select


def test_password_hashing():
    """Password hashing should be one-way and verifiable."""
    password = "supersecret123"
    hashed = hash_password(password)

    # Hashed password should be different from plain text
    assert hashed != password

    # Should verify correctly
    assert verify_password(password, hashed) is True

    # Wrong password should fail
    assert verify_password("wrongpassword", hashed) is False


@pytest.mark.asyncio
async def test_signup_creates_user_business_and_settings(client, db):
    resp = await client.post("/api/v1/auth/signup", json={
        "business_name": "Bright Smile Dental",
        "name": "Dana",
        "email": "Dana@Example.com",
        "password": "testpass123",
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["slug"] == "bright-smile-dental"

    user = (await db.execute(select(User).where(User.email == "dana@example.com"))).scalar_one()
    business = (await db.execute(select(Business).where(Business.id == user.business_id))).scalar_one()
    assert business.owner_email == "dana@example.com"
    assert business.timezone == "America/Los_Angeles"
    settings_row = await db.get(BusinessSettings, business.id)
    assert settings_row.business_name == "Bright Smile Dental"
    assert settings_row.notify_owner_email is True


@pytest.mark.asyncio
async def test_signup_duplicate_email_fails(client):
    payload = {"business_name": "First", "email": "dup@example.com", "password": "testpass123"}
    assert (await client.post("/api/v1/auth/signup", json=payload)).status_code == 201
    resp = await client.post("/api/v1/auth/signup", json=payload)
    assert resp.status_code == 409
    assert "already registered" in resp.json()["detail"].lower()


@pytest.mark.asyncio
async def test_signup_slug_collision_gets_suffix(client):
    first = await client.post("/api/v1/auth/signup", json={
        "business_name": "Acme Studio", "email": "a@example.com", "password": "testpass123",
    })
    second = await client.post("/api/v1/auth/signup", json={
        "business_name": "Acme  Studio!", "email": "b@example.com", "password": "testpass123",
    })
    assert first.json()["slug"] == "acme-studio"
    assert second.json()["slug"] == "acme-studio-2"


@pytest.mark.asyncio
async def test_login_and_me(client, owner):
    resp = await client.post("/api/v1/auth/login", json={
        "email": "owner@example.com",
        "password": "testpass123",
    })
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "owner@example.com"
    assert me.json()["business_id"] == owner["business_id"]


@pytest.mark.asyncio
async def test_login_wrong_password(client, owner):
    resp = await client.post("/api/v1/auth/login", json={
        "email": "owner@example.com",
        "password": "not-the-password",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_protected_routes_require_token(client):
    assert (await client.get("/api/v1/appointments")).status_code == 401
    resp = await client.get("/api/v1/settings", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_disabled_user_is_forbidden(client, db, owner):
    user = await db.get(User, uuid.UUID(owner["user_id"]))
    user.is_active = False
    await db.commit()
    resp = await client.get("/api/v1/auth/me", headers=owner["headers"])
    assert resp.status_code == 403
