from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:////var/lib/aptdepot/catalog.db"

    # YAML repository configuration
    config_path: str = "/etc/aptdepot/config.yaml"

    # Overrides storage.repo_root from the YAML file when set
    repo_root: Optional[str] = None

    # Overrides logging.level from the YAML file when set
    log_level: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="APTDEPOT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
