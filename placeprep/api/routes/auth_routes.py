"""
Authentication Routes

POST /auth/register - Register a student account
POST /auth/login - Login and get JWT token
GET /auth/me - Current user
"""

import logging

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text

from placeprep.db.postgres import get_db_session, fetch_one
from placeprep.core.auth import hash_password, verify_password, create_access_token, get_current_user
from placeprep.schemas.schemas import (
    RegisterRequest, LoginRequest, TokenResponse, UserResponse, MessageResponse, UserRole
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(request: RegisterRequest):
    """
    Register a new student account.

    Admin accounts are created with scripts/create_admin.py.
    """
    email = request.email.lower()
    if fetch_one("SELECT id FROM users WHERE email = :email", {"email": email}):
        raise HTTPException(status_code=400, detail="Email already registered")

    with get_db_session() as db:
        db.execute(
            text("""
                INSERT INTO users (email, password_hash, full_name, role, department, year)
                VALUES (:email, :password_hash, :full_name, :role, :department, :year)
            """),
            {
                "email": email,
                "password_hash": hash_password(request.password),
                "full_name": request.full_name,
                "role": UserRole.student.value,
                "department": request.department,
                "year": request.year
            }
        )

    logger.info("Registered student %s", email)
    return MessageResponse(message="Registered successfully. Please login.")


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """
    Login and receive a JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    user = fetch_one(
        "SELECT id, password_hash, role, is_active, full_name FROM users WHERE email = :email",
        {"email": request.email.lower()}
    )
    if not user or not verify_password(request.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user["is_active"]:
        raise HTTPException(status_code=403, detail="Account deactivated")

    user_id = str(user["id"])
    token = create_access_token(data={"sub": user_id, "role": user["role"], "type": "access"})

    return TokenResponse(access_token=token, user_id=user_id, role=user["role"], full_name=user["full_name"])


@router.get("/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    """Get current authenticated user's info."""
    row = fetch_one("""
        SELECT id, email, full_name, role, department, year, is_active, created_at
        FROM users WHERE id = :id
    """, {"id": user["user_id"]})
    if not row:
        raise HTTPException(status_code=404, detail="User not found")

    row["id"] = str(row["id"])
    return UserResponse(**row)
