from datetime import timedelta
from typing import Optional
from fastapi import HTTPException, status
from jose import jwt, JWTError
from loguru import logger

from app.core.config import settings
from app.core.money import utcnow


def create_access_token(
    user_id: str,
    role: str,
    expires_delta: Optional[timedelta] = None
) -> dict:
    """
    Issue a JWT for the given user.
    """
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "user_id": str(user_id),
        "role": role,
        "exp": expire
    }

    try:
        token = jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)
    except JWTError as e:
        logger.error(f"JWT encoding error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token creation failed"
        )

    return {
        "access_token": token,
        "token_type": "bearer",
        "user_id": str(user_id)
    }


def decode_access_token(token: str) -> dict:
    """Decode and verify a JWT, raising JWTError when invalid or expired"""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
