"""
Settings

Read once from the environment and `.env` (pydantic-settings). Every field
maps to an upper-case variable, e.g. `MHRSD_MOCK=false`.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent
DATA_DIR = BASE_DIR / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ---- service ----
    app_name: str = "Oracle-Recruitment-API"
    app_env: str = "development"
    debug: bool = True
    app_base_url: str = Field("http://localhost:8000", description="Public URL used in tracking links")
    cors_origins: List[str] = ["*"]
    database_url: str = f"sqlite+aiosqlite:///{DATA_DIR / 'recruitment.db'}"

    # ---- OpenAI-compatible LLM (email optimisation) ----
    llm_model: str = "gpt-4o-mini"
    llm_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1"
    llm_temperature: float = 0.7
    llm_timeout: int = 120
    llm_max_concurrency: int = 5
    llm_rate_limit: int = Field(60, description="Requests per minute")

    # ---- outbound email ----
    mail_from: str = "noreply@oracle-recruitment.sa"
    warmup_default_target: int = Field(1000, ge=1)
    warmup_default_days: int = Field(30, ge=1)
    ab_test_auto_min_sends: int = Field(100, ge=1, description="Sends per variant before auto-analysis")

    # ---- MHRSD (Ministry of Human Resources) ----
    mhrsd_api_url: str = "https://api.hrsd.gov.sa/v1"
    mhrsd_client_id: str = ""
    mhrsd_client_secret: str = ""
    mhrsd_mock: bool = Field(True, description="Simulate submissions instead of calling the ministry")
    mhrsd_timeout: int = 30

    # ---- background jobs ----
    scheduler_enabled: bool = False
    scheduler_check_interval: int = Field(60, ge=1, description="Seconds between due-task checks")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value):
        # accepts a JSON list or a comma-separated string
        if not isinstance(value, str):
            return value
        if value.strip().startswith("["):
            return json.loads(value)
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    @field_validator("database_url", mode="before")
    @classmethod
    def anchor_sqlite_path(cls, value):
        # relative sqlite paths resolve against the project root
        if isinstance(value, str) and "///./" in value:
            return value.replace("///./", f"///{BASE_DIR}/")
        return value

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
