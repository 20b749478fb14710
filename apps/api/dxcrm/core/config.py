from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "DX CRM API"
    app_env: str = "local"
    database_url: str = "postgresql+psycopg://dx:dx@localhost:5432/dx_crm"
    jwt_secret: str = "replace-me"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 480
    host: str = "0.0.0.0"
    port: int = 3000
    http_port: int = 3001
    ssl_key_path: str = "private.key"
    ssl_cert_path: str = "certificate.crt"
    cors_origins: str = "*"
    frontend_url: str | None = None
    display_utc_offset_hours: int = 7
    metrics_enabled: bool = False
    otel_enabled: bool = False
    otel_service_name: str = "dxcrm-api"
    otel_exporter_otlp_endpoint: str | None = None
    otel_console_exporter: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
