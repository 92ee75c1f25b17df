from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    env: str = Field(default="dev")
    log_level: str = Field(default="INFO")
    log_file: str | None = None
    log_max_bytes: int = Field(default=10 * 1024 * 1024)
    log_backup_count: int = Field(default=5)
    log_json: bool = False
    sentry_dsn: str | None = None

    # Bridge server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    bridge_status_messages: bool = False

    # Fyers (broker) credentials, only needed by the bridge
    fyers_app_id: str | None = None
    fyers_secret_key: str | None = None
    fyers_api_base: str = "https://api-t1.fyers.in/api/v3"
    fyers_feed_url: str = "wss://api-t1.fyers.in/socket/v2/dataSock"
    fyers_ping_interval: float = 20.0

    # Client side
    proxy_base_url: str = "http://localhost:3000"
    store_path: str = ".auratrade.json"
    http_timeout: float = 10.0

    # Analyst (Gemini)
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    analysis_temperature: float = 0.3
    explanation_temperature: float = 0.5

    # Pipeline timing and caps (seconds / item counts)
    analysis_initial_delay: float = 1.0
    analysis_interval: float = 5.0
    analysis_min_ticks: int = 10
    news_interval: float = 8.0
    tick_buffer_size: int = 200
    news_max_headlines: int = 20
    trade_log_size: int = 100

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
