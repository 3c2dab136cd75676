from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./skywatch.db"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://dashboard.example.com,https://api.example.com"
    CORS_ORIGINS: str = "*"

    # Alert deduplication
    DEFAULT_COOLDOWN_HOURS: float = 6
    ALERT_HISTORY_DAYS: int = 30

    # Window detection defaults (hourly forecasts)
    MAX_FORECAST_HOURS: int = 240
    WINDOW_MIN_SCORE: int = 65
    WINDOW_MIN_DURATION_MINUTES: int = 60
    WINDOW_MAX_WINDOWS: int = 3

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
