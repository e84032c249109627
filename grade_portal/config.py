from __future__ import annotations

from functools import lru_cache
from typing import Literal

from dotenv import find_dotenv, load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file from the working tree, regardless of current working directory
load_dotenv(find_dotenv(".env", usecwd=True))


class Settings(BaseSettings):
    """
    Configuration settings for the grade portal.

    These settings can be overridden via environment variables prefixed with
    GRADE_PORTAL_.
    """

    model_config = SettingsConfigDict(env_prefix="GRADE_PORTAL_", extra="ignore")

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["console", "json"] | None = None
    ENVIRONMENT: Literal["development", "production", "testing"] = "development"
    SERVICE_NAME: str = "grade_portal"

    CSV_DELIMITER: str = Field(
        default=",", min_length=1, max_length=1, description="Field delimiter for uploads"
    )
    ERROR_DISPLAY_LIMIT: int = Field(
        default=10, gt=0, description="Validation errors shown before the list is elided"
    )
    AUTO_CLOSE_DELAY_SECONDS: float = Field(
        default=2.0, ge=0, description="Pause before closing the upload panel on full success"
    )

    @property
    def use_json_logs(self) -> bool:
        if self.LOG_FORMAT is not None:
            return self.LOG_FORMAT == "json"
        return self.ENVIRONMENT == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
