"""Application configuration management."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class RelyingPartyConfig:
    """Relying party values consulted when a device signs in."""

    rp_id: str
    rp_origin: str


class Settings(BaseSettings):
    """Runtime configuration derived from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = Field("Authn Devices", alias="APP_NAME")
    environment: str = Field("development", alias="ENVIRONMENT")
    debug: bool = Field(False, alias="DEBUG")
    database_url: str = Field(..., alias="DATABASE_URL")
    fido_rp_id: str = Field(..., alias="FIDO_RP_ID")
    fido_rp_name: str = Field(..., alias="FIDO_RP_NAME")
    origin_url: AnyHttpUrl = Field(..., alias="ORIGIN_URL")
    webauthn_user_verification: str = Field("preferred", alias="WEBAUTHN_USER_VERIFICATION")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("webauthn_user_verification")
    @classmethod
    def validate_user_verification(cls, value: str) -> str:
        if value not in ("required", "preferred", "discouraged"):
            raise ValueError("WEBAUTHN_USER_VERIFICATION must be required, preferred or discouraged")
        return value

    @property
    def origin(self) -> str:
        return str(self.origin_url).rstrip("/")

    def relying_party(self) -> RelyingPartyConfig:
        return RelyingPartyConfig(rp_id=self.fido_rp_id, rp_origin=self.origin)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
