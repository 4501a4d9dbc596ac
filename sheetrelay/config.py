from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"
    google_sheet_id: str = Field(
        default="", validation_alias=AliasChoices("GOOGLE_SHEET_ID", "SHEETRELAY_GOOGLE_SHEET_ID")
    )
    google_credentials: str = Field(
        default="", validation_alias=AliasChoices("GOOGLE_CREDENTIALS", "SHEETRELAY_GOOGLE_CREDENTIALS")
    )
    google_credentials_file: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_CREDENTIALS_FILE", "SHEETRELAY_GOOGLE_CREDENTIALS_FILE"),
    )
    locations_file: Path | None = None
    default_location: str = "sum"
    request_timeout: float = Field(default=30.0, gt=0)
    serialize_writes: bool = False
    expose_error_details: bool = False
    cors_origins: list[str] = ["*"]

    model_config = {
        "env_prefix": "SHEETRELAY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_ignore_empty": True,
        "extra": "ignore",
        "populate_by_name": True,
    }


@lru_cache
def get_settings() -> Settings:
    return Settings()
