from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from odds_feed.common.enums import ExceptionHandlingStrategy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Default for providers built without an explicit strategy.
    exception_handling_strategy: ExceptionHandlingStrategy = Field(
        default=ExceptionHandlingStrategy.CATCH,
        validation_alias="ODDS_FEED_EXCEPTION_STRATEGY",
    )
    default_locale: str = Field(default="en", validation_alias="ODDS_FEED_DEFAULT_LOCALE")
    log_level: str = Field(default="INFO", validation_alias="ODDS_FEED_LOG_LEVEL")


settings = Settings()
