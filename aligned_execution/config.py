"""
Configuration management for RTG Aligned Execution
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "RTG Aligned Execution"
    APP_VERSION: str = "2.2.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./aligned_execution.db"

    # Board
    DEFAULT_ACTOR: str = "System"  # used when a request carries no X-Actor header
    SEED_DEFAULT_PROJECT: bool = True
    DEFAULT_PROJECT_NAME: str = "Default Project"

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
