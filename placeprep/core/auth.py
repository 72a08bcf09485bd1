"""
Bearer-token auth for students and admins.

Access tokens carry {"sub": user uuid, "role", "type": "access"}. Exam answer
keys are signed with the same secret but a different "type", so they are
refused here.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import text

from placeprep.core.config import get_settings
from placeprep.db.postgres import get_db_session

settings = get_settings()

ACCESS_TOKEN_TYPE = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign `data` with an expiry; `type` defaults to access."""
    claims = {"type": ACCESS_TOKEN_TYPE, **data}
    claims["exp"] = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    )
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Claims of a valid token, or None."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def _load_user(user_id: str):
    with get_db_session() as db:
        return db.execute(
            text("SELECT id, email, role, is_active, full_name FROM users WHERE id = :id"),
            {"id": user_id}
        ).fetchone()


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """Resolve the bearer token to {user_id, email, role, full_name}."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    claims = decode_token(credentials.credentials)
    if not claims or claims.get("type", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE or not claims.get("sub"):
        raise unauthorized

    user = _load_user(claims["sub"])
    if not user:
        raise unauthorized

    user_id, email, role, is_active, full_name = user
    if not is_active:
        raise HTTPException(status_code=403, detail="Account deactivated")

    return {"user_id": str(user_id), "email": email, "role": role, "full_name": full_name}


def _require_role(role: str, detail: str):
    async def dependency(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] != role:
            raise HTTPException(status_code=403, detail=detail)
        return user
    return dependency


get_current_student = _require_role("STUDENT", "Students only")
get_current_admin = _require_role("ADMIN", "Admins only")
