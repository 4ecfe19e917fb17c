"""
Application configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated config with sensible defaults
HOW: Pydantic BaseSettings reads from .env and environment
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Literal
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App metadata
    APP_NAME: str = "QuickSupply Directory"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Persistence backend selection
    PERSISTENCE_BACKEND: Literal["sql", "supabase"] = "sql"
    STORE_TIMEOUT: float = 8.0  # seconds per persistence call

    # SQL backend
    DATABASE_URL: str = "sqlite:///./data/quicksupply.db"

    # Supabase backend
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""

    # Local accounts (SQL backend only)
    AUTH_SECRET_KEY: str = "change-me-in-production"
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # LLM Provider Selection
    LLM_PROVIDER: Literal["gemini", "openrouter"] = "gemini"

    # Gemini Configuration
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_DEFAULT_MODEL: str = "gemini-3-flash-preview"

    # OpenRouter Configuration
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_DEFAULT_MODEL: str = "google/gemini-2.5-flash-lite"

    # LLM Request Configuration
    LLM_TIMEOUT: int = 30  # seconds
    LLM_MAX_RETRIES: int = 3
    LLM_RETRY_DELAY: float = 2  # seconds, base for exponential backoff
    LLM_DEFAULT_TEMPERATURE: float = 0.7
    LLM_DEFAULT_MAX_TOKENS: int = 2048

    # Directory behaviour
    AI_MATCH_LIMIT: int = 3
    DEFAULT_LISTING_IMAGE_URL: str = (
        "https://images.unsplash.com/photo-1581091226825-a6a2a5aee158?q=80&w=800&auto=format&fit=crop"
    )

    # CORS - accepts comma-separated string or list
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, list):
            return ",".join(v)
        return v

    def get_cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./data/logs/app.log"

    # Workspace Management
    WORKSPACE_TTL_MINUTES: int = 120
    WORKSPACE_CLEANUP_MINUTES: int = 15

    class Config:
        # Look for .env in the repository root first, then backend/.env
        env_file = [
            str(Path(__file__).parent.parent.parent.parent / ".env"),
            str(Path(__file__).parent.parent.parent / ".env"),
        ]
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Singleton instance
settings = Settings()
