"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./refi_gateway.db"

    # Market rates (Freddie Mac PMMS)
    pmms_url: str = "https://www.freddiemac.com/pmms"
    pmms_user_agent: str = "Mozilla/5.0 (compatible; RefinanceClarityEngine/1.0)"
    rates_file: str = "data/rates.json"
    rate_cache_ttl_seconds: float = 6 * 60 * 60
    rate_anomaly_max_change_pts: float = 3.0
    rate_min_pct: float = 2.0
    rate_max_pct: float = 15.0
    lender_cache_ttl_seconds: float = 60 * 60

    # Service
    service_name: str = "refi-gateway"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 8.0

    # Rate alert email (Resend); no API key means dry-run
    resend_api_key: str | None = None
    resend_api_url: str = "https://api.resend.com/emails"
    from_email: str = "alerts@refinanceclarity.com"
    base_url: str = "http://localhost:8000"
    email_max_retries: int = 3
    email_backoff_base: float = 1.0  # Exponential backoff base in seconds
    stale_rates_days: int = 10


settings = Settings()
