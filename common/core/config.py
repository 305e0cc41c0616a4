from typing import Optional, List
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.core.constants import Environment, CounterStoreBackend, EnforcementMode


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment Profile
    environment: Environment = Environment.LOCAL

    # API Settings
    app_name: str = "slide-metering"
    api_version: str = "v1"
    debug: bool = False

    # Database Components
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "slide"
    db_url: Optional[str] = None  # Full URL override, e.g. sqlite+aiosqlite:///./slide.db
    db_use_nullpool: bool = (
        False  # True for workers (sequential), False for API (concurrent)
    )
    db_pool_size: int = 10
    db_pool_overflow: int = 5

    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        if self.db_url:
            return self.db_url
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    # Rate limiting (slowapi storage, e.g. memory:// or a redis:// URL)
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"
    rate_limit_default: List[str] = ["10/second", "300/minute"]

    # OpenTelemetry
    otel_service_name: str = "slide-metering"
    otel_service_version: str = "0.1.0"

    # Axiom (traces are only exported when a token is configured)
    axiom_token: Optional[str] = None
    axiom_dataset: Optional[str] = None

    # Metering
    metering_counter_store: CounterStoreBackend = CounterStoreBackend.SQL
    metering_enforcement: EnforcementMode = EnforcementMode.STRICT
    metering_timezone: str = "UTC"  # Reference timezone for daily windows
    metering_warning_threshold_percent: float = 80.0
    metering_history_days: int = 30
    metering_redis_key_prefix: str = "usage:"

    @property
    def cors_allowed_origins(self) -> List[str]:
        """Auto-select CORS origins based on environment."""
        if self.environment == Environment.LOCAL:
            return [
                "http://localhost:3000",
                "http://localhost:3001",
            ]
        return [
            "https://slide.app",
            "https://www.slide.app",
        ]


settings = Settings()
