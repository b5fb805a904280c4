from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Single origin allowed to receive credentialed CORS responses
    frontend_url: str = "http://localhost:3000"
    # Contact Form 7 feedback endpoint the quote form is forwarded to
    wordpress_api_endpoint: Optional[str] = None

    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"

    upstream_connect_timeout: float = 10.0
    upstream_read_timeout: float = 120.0

    # Upper bound for the in-memory file attachment
    max_upload_bytes: int = 10 * 1024 * 1024
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=("../.env", ".env"),
        extra="ignore",  # ignore env vars not defined as fields
    )
