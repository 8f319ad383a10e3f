"""
Configurações da aplicação (variáveis de ambiente / .env)
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables"""

    APP_NAME: str = Field(default="Plataforma de Reservas")

    # Banco
    DATABASE_URL: str = Field(default="sqlite:///./reservas.db")
    DB_ECHO: bool = Field(default=False)

    # JWT
    SECRET_KEY: str = Field(default="change-this-in-production")
    ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)

    # Horário "de parede" dos negócios (datas/horas das reservas são locais)
    TIMEZONE: str = Field(default="America/Argentina/Buenos_Aires")

    LOG_LEVEL: str = Field(default="INFO")

    # Se true, solicitações com conflito são recusadas mesmo quando ficam PENDING
    REJECT_CONFLICTING_REQUESTS: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
