"""Pydantic schemas for authentication endpoints."""

from pydantic import BaseModel, EmailStr
from uuid import UUID


class UserSignup(BaseModel):
    """Request schema for owner signup (creates the business too)."""
    business_name: str
    name: str | None = None
    email: EmailStr
    password: str
    timezone: str | None = None


class UserLogin(BaseModel):
    """Request schema for user login."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """Response schema for signup/login — returns JWT token."""
    access_token: str
    token_type: str = "bearer"
    business_id: UUID
    user_id: UUID
    slug: str | None = None


class UserOut(BaseModel):
    id: UUID
    email: str
    full_name: str | None = None
    business_id: UUID
    is_active: bool = True

    class Config:
        from_attributes = True
