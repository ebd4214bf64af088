from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "HomeAway Booking API"
    environment: str = "development"
    log_level: str = "INFO"

    # Identity
    admin_user_id: str = ""

    # CORS
    app_url: str = ""
    cors_origins: str = "http://localhost:3000"

    # Rate limiting
    rate_limit_sweep_interval: int = 300  # 5 minutes

    model_config = SettingsConfigDict(
        env_prefix="HOMEAWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
        if self.app_url and self.app_url not in origins:
            origins.insert(0, self.app_url)
        return origins


settings = Settings()


def get_settings() -> Settings:
    return settings
