import logging
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from adpilot.constants import CONTEXT_IDLE_SECONDS, DEFAULT_ACCEPT_TOKEN, HISTORY_LIMIT
from adpilot.logging import LogFormat, get_logger

ADPILOT_DIR = Path.home() / ".adpilot"

_logger = get_logger(__name__)


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ADPILOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        populate_by_name=True,
    )

    # Conversation core
    accept_token: str = DEFAULT_ACCEPT_TOKEN
    admin_user_ids: Annotated[list[str], NoDecode] = Field(default_factory=list)
    history_limit: int = HISTORY_LIMIT
    context_idle_minutes: int = CONTEXT_IDLE_SECONDS // 60

    # Session storage: "memory" keeps everything in-process, "sqlite" survives restarts
    store: Literal["memory", "sqlite"] = "memory"
    db_dir: Path = ADPILOT_DIR

    # Logging: "json" emits one JSON object per line for log shippers
    log_level: str = "INFO"
    log_format: LogFormat = "console"

    # Generative backends
    chat_model: str = "openai/gpt-4o-mini"
    image_model: str = "imagen-4.0-generate-001"
    video_model: str = "veo-3.0-generate-001"
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")

    # WhatsApp Cloud API - standard env vars, no prefix
    whatsapp_phone_number_id: str | None = Field(default=None, alias="WHATSAPP_PHONE_NUMBER_ID")
    whatsapp_access_token: str | None = Field(default=None, alias="WHATSAPP_ACCESS_TOKEN")
    whatsapp_verify_token: str | None = Field(default=None, alias="WHATSAPP_VERIFY_TOKEN")

    # WooCommerce REST API (v3)
    wc_api_url: str | None = Field(default=None, alias="WC_API_URL")
    wc_api_key: str | None = Field(default=None, alias="WC_API_KEY")
    wc_api_secret: str | None = Field(default=None, alias="WC_API_SECRET")

    # Meta Marketing API
    meta_access_token: str | None = Field(default=None, alias="META_ACCESS_TOKEN")
    meta_ad_account_id: str | None = Field(default=None, alias="META_AD_ACCOUNT_ID")
    meta_page_id: str | None = Field(default=None, alias="META_PAGE_ID")
    shop_url: str = Field(default="", alias="SHOP_URL")

    @field_validator("accept_token")
    @classmethod
    def _validate_accept_token(cls, v: str) -> str:
        token = v.strip()
        if not token or len(token.split()) != 1:
            raise ValueError(f"accept_token must be a single word, got {v!r}")
        return token

    @field_validator("admin_user_ids", mode="before")
    @classmethod
    def _split_admin_ids(cls, v: str | list[str] | None) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"log_level must be a logging level name, got {v!r}")
        return level

    @field_validator("history_limit")
    @classmethod
    def _validate_history_limit(cls, v: int) -> int:
        if not 1 <= v <= 200:
            raise ValueError(f"history_limit must be 1-200, got {v}")
        return v

    @field_validator("context_idle_minutes")
    @classmethod
    def _validate_idle_minutes(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"context_idle_minutes must be positive, got {v}")
        return v

    @property
    def context_idle_seconds(self) -> int:
        return self.context_idle_minutes * 60

    @property
    def sessions_db_path(self) -> Path:
        return self.db_dir / "sessions.db"

    @property
    def catalog_configured(self) -> bool:
        return bool(self.wc_api_url and self.wc_api_key and self.wc_api_secret)

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.whatsapp_phone_number_id and self.whatsapp_access_token)

    def is_admin(self, user_id: str) -> bool:
        # No allowlist configured means every operator is trusted
        return not self.admin_user_ids or user_id in self.admin_user_ids


def get_config() -> Config:
    config = Config()
    if not config.admin_user_ids:
        _logger.info("admin_user_ids not set, privileged commands are open to every user")
    return config
