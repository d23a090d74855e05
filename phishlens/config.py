from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # API Configuration
    APP_NAME: str = "PhishLens"
    VERSION: str = "2.0.0"
    API_PREFIX: str = "/api"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Database
    DATABASE_URL: str = "sqlite:///./phishlens.db"

    # Detection Engine
    ENGINE_NAME: str = "PhishLens Heuristic Engine"
    ENGINE_VERSION: str = "2.0"
    MAX_INPUT_CHARS: int = 50000

    # Authentication
    OTP_EXPIRE_MINUTES: int = 10
    TOKEN_EXPIRE_DAYS: int = 7
    MIN_PASSWORD_LENGTH: int = 6

    # Outgoing mail (OTP delivery). Without SMTP_HOST codes are only logged.
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM: str = "PhishLens <no-reply@phishlens.local>"
    SMTP_USE_TLS: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
