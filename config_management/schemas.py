from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REPO_BASE_URL = "https://github.com/seankhliao"


class TracingConfig(BaseSettings):
    dsn: Optional[str] = None  # Sentry DSN, tracing is off without one
    environment: str = Field(default="production")
    traces_sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)

    model_config = SettingsConfigDict(env_prefix='SENTRY_', extra='ignore')


class AppConfig(BaseSettings):
    service_name: str = Field(default="cloudbuild-gchat")
    # Google Chat incoming webhook, delivery fails while this is empty
    gchat_webhook: str = Field(default="")
    gchat_timeout: float = Field(default=10.0, gt=0)
    # Prefix for repository, branch and commit links
    repo_base_url: str = Field(default=DEFAULT_REPO_BASE_URL)
    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    tracing: TracingConfig = Field(default_factory=TracingConfig)

    model_config = SettingsConfigDict(extra='ignore')
