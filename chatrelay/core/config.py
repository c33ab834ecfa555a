from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "AI Chat Backend"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./chatrelay.db"

    # Ollama
    OLLAMA_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.2:1b-instruct-q4_K_M"
    GENERATE_TIMEOUT: float = 30.0
    HEALTH_TIMEOUT: float = 5.0

    # Password hashing
    BCRYPT_ROUNDS: int = 10

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    CORS_ORIGINS: List[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None
    LOG_FILE: str = "app.log"

    @field_validator("OLLAMA_URL")
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @field_validator("BCRYPT_ROUNDS")
    def validate_rounds(cls, v):
        # bcrypt only accepts cost factors 4..31
        if not 4 <= v <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return v

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
