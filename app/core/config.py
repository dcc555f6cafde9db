# app/core/config.py
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    SECRET_KEY: str = "your-super-secret-jwt-key-change-in-prod"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 1 day
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # Server-side idle timeout for bearer tokens
    INACTIVITY_TIMEOUT_MINUTES: int = 60
    # Teachers may edit their own profile at most this often
    PROFILE_UPDATE_INTERVAL_DAYS: int = 30

    DATABASE_URL: str = "sqlite:///./examenes.db"

    CORS_ORIGINS: List[str] = [
        "http://localhost",
        "http://127.0.0.1",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8000",
    ]

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

# Instance is created ONCE
settings = Settings()
