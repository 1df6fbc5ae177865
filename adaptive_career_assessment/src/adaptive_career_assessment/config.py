import os
from typing import List

from dotenv import load_dotenv

load_dotenv()
load_dotenv('../.env')  # Also try parent directory


class Config:
    """Configuration for the assessment service, read from the environment."""

    # LLM Configuration
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    # Any OpenAI-compatible gateway works; unset means api.openai.com
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))
    LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))

    # Persistence
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")

    # Assessment bounds
    MIN_QUESTIONS = 3
    MAX_QUESTIONS = 10

    # Live session registry (API process)
    SESSION_COMPLETED_TTL_MINUTES = float(os.getenv("SESSION_COMPLETED_TTL_MINUTES", "30"))
    SESSION_IDLE_TTL_MINUTES = float(os.getenv("SESSION_IDLE_TTL_MINUTES", "240"))
    MAX_ACTIVE_SESSIONS = int(os.getenv("MAX_ACTIVE_SESSIONS", "1000"))

    # API Configuration
    API_CONFIG = {
        "host": os.getenv("API_HOST", "0.0.0.0"),
        "port": int(os.getenv("API_PORT", "8000")),
        "cors_origins": os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(","),
        "title": "Adaptive Career Assessment API",
        "version": "1.0.0"
    }

    # Logging Configuration
    LOGGING_CONFIG = {
        "level": os.getenv("LOG_LEVEL", "INFO").upper(),
        "use_colors": os.getenv("LOG_COLORS", "true").lower() == "true",
    }

    @classmethod
    def supabase_configured(cls) -> bool:
        return bool(cls.SUPABASE_URL and cls.SUPABASE_SERVICE_KEY)

    @classmethod
    def cors_origins(cls) -> List[str]:
        return [origin.strip() for origin in cls.API_CONFIG["cors_origins"] if origin.strip()]

    @classmethod
    def validate_config(cls):
        """Validate configuration values"""
        errors = []

        if cls.LLM_TIMEOUT_SECONDS <= 0:
            errors.append("LLM_TIMEOUT_SECONDS must be positive")

        if not 0.0 <= cls.LLM_TEMPERATURE <= 2.0:
            errors.append("LLM_TEMPERATURE must be between 0 and 2")

        if cls.SESSION_COMPLETED_TTL_MINUTES <= 0 or cls.SESSION_IDLE_TTL_MINUTES <= 0:
            errors.append("Session TTLs must be positive")

        if cls.MAX_ACTIVE_SESSIONS < 1:
            errors.append("MAX_ACTIVE_SESSIONS must be at least 1")

        if cls.LOGGING_CONFIG["level"] not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append("LOG_LEVEL must be a standard logging level name")

        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

        return True


def get_config():
    """Get configuration based on environment"""
    return Config()
