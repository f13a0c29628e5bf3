from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True, env_file=".env", extra="ignore"
    )

    # Listener settings
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Relay settings
    WS_PATH: str = "/ws"
    WS_SEND_TIMEOUT_SECONDS: float = 5.0
    WS_IDLE_TIMEOUT_SECONDS: float = 0
    WS_LOG_PAYLOADS: bool = False

    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "human"
    LOG_FILE_PATH: str = ""
    LOG_EXCLUDED_PATHS: list[str] = ["/metrics", "/health"]

    ENVIRONMENT: str = "development"


app_settings = Settings()
