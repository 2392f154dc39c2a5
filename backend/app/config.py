"""
Application Configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    ENVIRONMENT: str = "development"

    # LLM API Keys (Optional - mock generators work without them)
    GEMINI_API_KEY: str = ""

    # Database
    DATABASE_URL: str = "sqlite:///./advisor.db"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "info"

    # Rate limiting (slowapi syntax)
    RATE_LIMIT: str = "120/minute"

    # LLM Settings
    LLM_PROVIDER: str = "mock"  # "mock" or "gemini"
    LLM_MODEL: str = "gemini-2.5-flash"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 2000

    # Game theory tutor generation parameters
    TUTOR_TEMPERATURE: float = 0.8
    TUTOR_TOP_K: int = 40
    TUTOR_TOP_P: float = 0.95
    TUTOR_MAX_TOKENS: int = 4096

    # Wizard sessions
    GUEST_REQUEST_LIMIT: int = 3
    SESSION_TTL_HOURS: int = 24

    # Mock generators (fixed seed gives reproducible scores)
    MOCK_SEED: Optional[int] = None

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
