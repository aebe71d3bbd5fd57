# wellchat/main.py
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import List, Literal, Optional

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, AliasChoices
from starlette.background import BackgroundTask
from starlette.responses import JSONResponse, StreamingResponse
from sqlmodel import select, Session

from wellchat import config
from wellchat.auth import (
    EMAIL_RE,
    MIN_PASSWORD_LEN,
    create_access_token,
    get_current_user,
    hash_password,
    optional_user_id,
    verify_password,
)
from wellchat.db import init_db, get_session, engine
from wellchat.models import User, MoodEntry, JournalEntry, SessionAnalytics
from wellchat.providers import GroqCompletionProvider, UpstreamError
from wellchat.rate_limit import RateLimiter
from wellchat.relay import ChatRelay, ThrottleNotice
from wellchat.store import SQLMessageStore

# Basic logging so startup clearly reports whether the upstream is configured (never prints keys)
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Wellness Chat", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Ensure database tables exist at import time as well (useful for tests without lifespan)
try:
    init_db()
except Exception:
    logging.exception("Database initialisation failed at import; will retry on startup")

provider = GroqCompletionProvider()
message_store = SQLMessageStore(engine)
chat_relay = ChatRelay(provider, message_store, RateLimiter())


# -------- Pydantic request models --------
class Turn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatIn(BaseModel):
    conversation_id: str = Field(validation_alias=AliasChoices("conversationId", "sessionId", "conversation_id"))
    messages: List[Turn] = Field(min_length=1)
    identity: Optional[str] = Field(default=None, validation_alias=AliasChoices("identity", "userId"))


class SignUpIn(BaseModel):
    email: str
    password: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None


class LoginIn(BaseModel):
    email: str
    password: str


class ProfileIn(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None


class MoodIn(BaseModel):
    mood_score: int = Field(ge=1, le=10)
    notes: Optional[str] = None


class JournalIn(BaseModel):
    entry: str


class SessionAnalyticsIn(BaseModel):
    user_id: str = Field(validation_alias=AliasChoices("userId", "user_id"))
    duration: int = 0
    message_count: int = Field(default=0, validation_alias=AliasChoices("messageCount", "message_count"))
    timestamp: Optional[datetime] = None


def _profile(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "avatar_url": user.avatar_url,
        "bio": user.bio,
        "created_at": user.created_at.isoformat(),
    }


def _as_utc(value: datetime) -> datetime:
    # Clients may omit the offset; treat those as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def resolve_identity(payload: ChatIn, request: Request) -> str:
    """Rate-limit key: authenticated user, then the client-supplied identity, then the peer address."""
    uid = optional_user_id(request)
    if uid is not None:
        return f"user:{uid}"
    if payload.identity:
        return payload.identity
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


# -------- Startup / shutdown --------
@app.on_event("startup")
def _startup():
    init_db()
    if provider.configured:
        logging.info("Upstream configured: streaming from %s model=%s", provider.api_url, provider.model)
    else:
        logging.warning("GROQ_API_KEY not set: /api/chat will return 500 until it is configured.")


@app.on_event("shutdown")
async def _shutdown():
    await provider.aclose()


@app.get("/api/status")
def status():
    """Whether the upstream completion API is configured. Never returns the key."""
    return {
        "llm_configured": provider.configured,
        "model": provider.model,
        "rate_limit": {"window_ms": chat_relay.limiter.window_ms, "max_requests": chat_relay.limiter.max_requests},
    }


# -------- Chat endpoint --------
@app.post("/chat")
@app.post("/api/chat")
async def chat(payload: ChatIn, request: Request):
    identity = resolve_identity(payload, request)
    messages = [m.model_dump() for m in payload.messages]
    try:
        result = await chat_relay.relay(payload.conversation_id, messages, identity)
    except UpstreamError:
        logging.exception("Error calling completion API for session=%s", payload.conversation_id)
        return JSONResponse({"error": "Failed to get AI response"}, status_code=500)
    if isinstance(result, ThrottleNotice):
        return JSONResponse(result.to_dict(), status_code=200)
    # The reply is stored after the last body frame has been sent
    return StreamingResponse(result.iter_text(), media_type="text/plain", background=BackgroundTask(result.finish))


@app.get("/api/messages/{conversation_id}")
def list_messages(conversation_id: str):
    rows = message_store.list_messages(conversation_id)
    return [{"role": r.role, "content": r.content, "created_at": r.created_at.isoformat()} for r in rows]


# -------- Auth endpoints --------
@app.post("/api/auth/signup")
def auth_signup(payload: SignUpIn, db: Session = Depends(get_session)):
    email = (payload.email or "").strip().lower()
    password = payload.password or ""
    if not EMAIL_RE.match(email):
        raise HTTPException(status_code=400, detail="Valid email required")
    if len(password) < MIN_PASSWORD_LEN:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LEN} characters")
    if db.exec(select(User).where(User.email == email)).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=email,
        full_name=(payload.full_name or "").strip() or None,
        avatar_url=payload.avatar_url,
        bio=payload.bio,
        password_hash=hash_password(password),
    )
    db.add(user); db.commit(); db.refresh(user)
    logging.info("New account id=%s", user.id)
    return {"status": "ok", "token": create_access_token(user), "user": _profile(user)}


@app.post("/api/auth/login")
def auth_login(payload: LoginIn, db: Session = Depends(get_session)):
    email = (payload.email or "").strip().lower()
    if not email or not payload.password:
        raise HTTPException(status_code=400, detail="Missing credentials")
    user = db.exec(select(User).where(User.email == email)).first()
    if not user:
        raise HTTPException(status_code=404, detail="Email not found")
    if not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Wrong password")
    return {"status": "ok", "token": create_access_token(user), "user": _profile(user)}


@app.get("/api/profile")
def get_profile(user: User = Depends(get_current_user)):
    return _profile(user)


@app.patch("/api/profile")
def update_profile(payload: ProfileIn, user: User = Depends(get_current_user), db: Session = Depends(get_session)):
    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(user, key, value)
    db.add(user); db.commit(); db.refresh(user)
    return _profile(user)


# -------- Mood & journal --------
@app.post("/api/mood")
def add_mood(payload: MoodIn, user: User = Depends(get_current_user), db: Session = Depends(get_session)):
    row = MoodEntry(user_id=user.id, mood_score=payload.mood_score, notes=payload.notes)
    db.add(row); db.commit(); db.refresh(row)
    return {"id": row.id, "mood_score": row.mood_score, "notes": row.notes, "created_at": row.created_at.isoformat()}


@app.get("/api/mood")
def list_mood(limit: int = 10, user: User = Depends(get_current_user), db: Session = Depends(get_session)):
    rows = db.exec(
        select(MoodEntry)
        .where(MoodEntry.user_id == user.id)
        .order_by(MoodEntry.created_at.desc(), MoodEntry.id.desc())
        .limit(max(1, min(limit, 100)))
    ).all()
    average = round(sum(r.mood_score for r in rows) / len(rows), 1) if rows else None
    return {
        "entries": [
            {"id": r.id, "mood_score": r.mood_score, "notes": r.notes, "created_at": r.created_at.isoformat()}
            for r in rows
        ],
        "average": average,
    }


@app.post("/api/journal")
def add_journal(payload: JournalIn, user: User = Depends(get_current_user), db: Session = Depends(get_session)):
    text = (payload.entry or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Journal entry is empty")
    row = JournalEntry(user_id=user.id, entry=text)
    db.add(row); db.commit(); db.refresh(row)
    return {"id": row.id, "entry": row.entry, "created_at": row.created_at.isoformat()}


@app.get("/api/journal")
def list_journal(user: User = Depends(get_current_user), db: Session = Depends(get_session)):
    rows = db.exec(
        select(JournalEntry).where(JournalEntry.user_id == user.id).order_by(JournalEntry.created_at.desc(), JournalEntry.id.desc())
    ).all()
    return [{"id": r.id, "entry": r.entry, "created_at": r.created_at.isoformat()} for r in rows]


# -------- Session analytics --------
@app.post("/api/analytics/session")
def store_session_analytics(payload: SessionAnalyticsIn, db: Session = Depends(get_session)):
    try:
        db.add(SessionAnalytics(
            user_id=payload.user_id,
            duration=payload.duration,
            message_count=payload.message_count,
            session_date=_as_utc(payload.timestamp) if payload.timestamp else datetime.now(timezone.utc),
        ))
        db.commit()
    except Exception:
        logging.exception("Error storing session analytics for user=%s", payload.user_id)
        return JSONResponse({"error": "Failed to store analytics"}, status_code=500)
    return {"success": True}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "wellchat.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
