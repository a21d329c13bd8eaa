from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Bitget Market Data Backend"
    bitget_rest_base_url: str = "https://api.bitget.com"
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    # Upstream request policy
    request_timeout_seconds: float = 15.0
    orderbook_timeout_seconds: float = 10.0
    retry_attempts: int = 3
    retry_backoff_seconds: float = 1.0
    user_agent: str = "Mozilla/5.0 (compatible; BitgetDashboard/1.0)"

    # Client side: order book auto-refresh
    orderbook_poll_interval_seconds: float = 30.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")


settings = Settings()
