from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Telemetry backend
    applicationinsights_connection_string: str = ""
    service_name: str = "logging-metrics"

    # Metric export
    export_interval_millis: int = 60000
    export_timeout_millis: int = 30000

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


def get_settings() -> Settings:
    """Read settings from the environment; a fresh read on every call"""
    return Settings()
