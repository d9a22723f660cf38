from functools import lru_cache

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

from longpoll.utilities.constants import (
    APP_NAME,
    CLEANUP_INTERVAL,
    CLIENT_TIMEOUT,
    DISCONNECT_CHECK_INTERVAL,
    LOG_LEVEL,
    POLL_TIMEOUT,
)


class Settings(BaseSettings):
    """Runtime configuration, overridable with LPOLL_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="LPOLL_")

    app_name: str = APP_NAME
    log_level: str = LOG_LEVEL
    poll_timeout: float = POLL_TIMEOUT
    client_timeout: float = CLIENT_TIMEOUT
    cleanup_interval: float = CLEANUP_INTERVAL
    disconnect_check_interval: float = DISCONNECT_CHECK_INTERVAL


@lru_cache()
def get_settings() -> Settings:
    load_dotenv()
    return Settings()
