"""
Environment configuration, read once at import after loading .env
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Anthropic
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5")
AI_MAX_TOKENS = _env_int("AI_MAX_TOKENS", 1024)

# Date placed in the generation prompt
TASKS_TIMEZONE = os.getenv("TASKS_TIMEZONE", "America/Detroit")

# Server
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_int("PORT", 8000)
