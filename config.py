from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from INVENTORY_* variables or a .env file."""

    db_path: str = Field(default="inventory.db")
    log_level: str = Field(default="INFO")
    # Seconds a bridge request may run before its statement is interrupted
    request_timeout: float = Field(default=10.0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="INVENTORY_",
        extra="ignore",
    )

    @field_validator("request_timeout")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v):
        return str(v).strip().upper() if v is not None else "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
