"""Configuration and environment settings for the CNAB Store importer."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the CNAB Store importer."""

    database_url: str = "sqlite:///cnab_store.db"
    server_host: str = "127.0.0.1"
    server_port: int = 8000
    log_level: str = "INFO"
    log_file: str = "logs/cnab_store.log"
    input_encoding: str = "utf-8-sig"
    summary_default_page_size: int = 10
    summary_max_page_size: int = 100

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
