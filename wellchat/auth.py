# wellchat/auth.py
from __future__ import annotations
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request
from jose import jwt, JWTError  # python-jose
from passlib.context import CryptContext
from sqlmodel import Session, select

from wellchat.config import JWT_SECRET, JWT_ALGO, JWT_EXP_MINUTES
from wellchat.db import get_session
from wellchat.models import User

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LEN = 6

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(pw: str) -> str:
    return pwd_context.hash(pw)


def verify_password(pw: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(pw, hashed)
    except ValueError:
        # Unrecognised or corrupt hash
        return False


def create_access_token(user: User, minutes: int = JWT_EXP_MINUTES) -> str:
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "exp": int((datetime.now(timezone.utc) + timedelta(minutes=minutes)).timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGO)


def bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def decode_user_id(token: str) -> Optional[int]:
    try:
        data = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGO])
        return int(data.get("sub"))
    except (JWTError, TypeError, ValueError):
        return None


def get_current_user(request: Request, db: Session = Depends(get_session)) -> User:
    token = bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Missing token")
    uid = decode_user_id(token)
    if uid is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = db.exec(select(User).where(User.id == uid)).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def optional_user_id(request: Request) -> Optional[int]:
    """User id from a valid bearer token, or None. Never raises."""
    token = bearer_token(request)
    return decode_user_id(token) if token else None
