from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


# ------------------------------------------------------------
# Configuration
# ------------------------------------------------------------

class Settings(BaseSettings):
    """Application settings loaded from SWEETSHOP_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SWEETSHOP_",
        extra="ignore",
    )

    app_name: str = "Sweet Shop"

    # MongoDB
    mongo_url: str = "mongodb://localhost:27017"
    database_name: str = "SweetShop"

    # JWT config
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60  # tokens are valid for one hour

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
