from __future__ import annotations
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RELAY_", env_file=".env", extra="ignore")

    # Network
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080)
    metrics_path: str = Field(default="/metrics")

    # Logging
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=True)

    # Messages API provider
    provider_messages_url: str = Field(default="https://sandbox.nexmodemo.com/v0.1/messages/")
    provider_timeout_s: float = Field(default=10.0)
    provider_retry_attempts: int = Field(default=3, description="1 disables retries of transient provider failures.")
    provider_retry_min_wait_s: float = Field(default=0.5)
    provider_retry_max_wait_s: float = Field(default=5.0)
    whatsapp_policy: str = Field(default="deterministic")
    whatsapp_locale: str = Field(default="en")

    # Manifest advertised to the ticketing platform
    manifest_name: str = Field(default="Messages API")
    manifest_id: str = Field(default="com.nexmo.integrations.messages.api.three")
    manifest_author: str = Field(default="Messages API Relay")
    manifest_version: str = Field(default="v0.0.2")

    # Queues registered at startup; otherwise only the admin UI registers numbers.
    registered_numbers: list[str] = Field(default_factory=list)

def load_settings() -> Settings:
    return Settings()
