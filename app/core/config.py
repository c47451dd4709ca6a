# app/core/config.py
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Entorno
    ENV: str = "dev"  # dev | prod
    DEBUG: bool = False

    # App
    PROJECT_NAME: str = "Dealer Backoffice"
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Base de datos
    DATABASE_URL: str = "sqlite:///./dealer_backoffice.db"

    # Seguridad
    SECRET_KEY: str
    SESSION_COOKIE: str = "dealer_session"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Seguros: ventana (dias) para marcar una póliza como "por vencer"
    INSURANCE_EXPIRING_SOON_DAYS: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
