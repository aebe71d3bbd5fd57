# wellchat/config.py
import os

from dotenv import load_dotenv

# Prefer values from a local .env during development so a stale shell export does not win.
load_dotenv(override=True)


def _flag(name: str, default: str = "0") -> bool:
    return str(os.getenv(name, default)).lower() in ("1", "true", "yes", "on")


# --- Upstream completion API (OpenAI-compatible, Groq by default) ---
GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
GROQ_API_URL = os.getenv("GROQ_API_URL", "https://api.groq.com/openai/v1/chat/completions")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama3-70b-8192")
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "30"))

# --- Relay policy ---
RATE_LIMIT_WINDOW_MS = int(os.getenv("RATE_LIMIT_WINDOW_MS", "120000"))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "5"))
CONTEXT_WINDOW = int(os.getenv("CONTEXT_WINDOW", "8"))

# --- Storage ---
DB_PATH = os.getenv("WELLCHAT_DB", "wellchat.db")
SQL_ECHO = _flag("SQL_ECHO")

# --- JWT settings ---
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALGO = os.getenv("JWT_ALGO", "HS256")
JWT_EXP_MINUTES = int(os.getenv("JWT_EXP_MINUTES", str(60 * 24 * 7)))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
