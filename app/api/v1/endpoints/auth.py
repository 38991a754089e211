"""Authentication endpoints for Slotbook."""

import logging
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.models.user import User
from app.schemas.auth import UserSignup, UserLogin, Token, UserOut
from app.services import catalog
from app.services.auth import (
    hash_password,
    authenticate_user,
    create_user_token,
    get_user_by_email,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/signup", response_model=Token, status_code=201)
async def signup(user_data: UserSignup, db: AsyncSession = Depends(get_db)):
    """Register an owner and create their business.

    Creates the Business, its settings row and the User in a single transaction.
    """
    email = user_data.email.lower()
    if await get_user_by_email(db, email):
        raise HTTPException(status_code=409, detail="Email already registered")
    if len(user_data.password) < 8:
        raise HTTPException(status_code=400, detail="Password must be at least 8 characters")

    business = await catalog.create_business(
        db,
        name=user_data.business_name,
        owner_email=email,
        owner_name=user_data.name,
        timezone=user_data.timezone,
    )
    user = User(
        email=email,
        hashed_password=hash_password(user_data.password),
        full_name=user_data.name,
        business_id=business.id,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("Owner signed up: %s (business %s)", user.email, business.slug)
    return {
        "access_token": create_user_token(user),
        "token_type": "bearer",
        "user_id": user.id,
        "business_id": business.id,
        "slug": business.slug,
    }


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    """Login with email and password."""
    user = await authenticate_user(db, credentials.email, credentials.password)
    if not user:
        raise HTTPException(status_code=401, detail="Incorrect email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="User account is disabled")

    business = await catalog.get_business(db, user.business_id)
    user.last_login_at = datetime.utcnow()
    await db.commit()

    logger.info("User logged in: %s", user.email)
    return {
        "access_token": create_user_token(user),
        "token_type": "bearer",
        "user_id": user.id,
        "business_id": user.business_id,
        "slug": business.slug,
    }


@router.get("/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
