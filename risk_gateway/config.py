"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./risk_gateway.db"
    seed_data: bool = False

    # Service
    service_name: str = "risk-gateway"
    log_level: str = "INFO"

    # Transactions are stamped with wall-clock time in this zone
    processing_timezone: str = "Asia/Colombo"

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100


settings = Settings()
