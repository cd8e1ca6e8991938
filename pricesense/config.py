import os
from functools import lru_cache

from dotenv import load_dotenv

# load .env from the project root when present
load_dotenv()

API_KEY_ENV = "GEMINI_API_KEY"


class Settings:
    # Server
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")
    CORS_ALLOW_ORIGIN: str = os.getenv("CORS_ALLOW_ORIGIN", "*")
    DEBUG_AI: bool = os.getenv("DEBUG_AI", "0").strip() in ("1", "true", "yes", "on")

    # Upstream (Gemini generateContent)
    GEMINI_API_BASE: str = os.getenv(
        "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
    ).rstrip("/")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    REQUEST_TIMEOUT_SEC: float = float(os.getenv("REQUEST_TIMEOUT_SEC", "30"))
    USER_AGENT: str = os.getenv("USER_AGENT", "PriceSense-AI/1.0")

    # Generation
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.3"))
    LLM_TOP_P: float = float(os.getenv("LLM_TOP_P", "0.8"))
    LLM_TOP_K: int = int(os.getenv("LLM_TOP_K", "40"))
    LLM_MAX_OUTPUT_TOKENS: int = int(os.getenv("LLM_MAX_OUTPUT_TOKENS", "1024"))

    # Input
    SPECS_MAX_CHARS: int = int(os.getenv("SPECS_MAX_CHARS", "2000"))

    @property
    def generate_url(self) -> str:
        return f"{self.GEMINI_API_BASE}/models/{self.GEMINI_MODEL}:generateContent"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def get_api_key() -> str | None:
    # read on every call, never cached
    value = os.getenv(API_KEY_ENV, "").strip()
    return value or None
