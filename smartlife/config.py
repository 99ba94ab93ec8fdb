"""
Configuration management using Pydantic Settings.
Loads environment variables from .env file with validation.
"""

from pathlib import Path
from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="SmartLife AI")
    environment: str = Field(
        default="development",
        description="development logs outbound email/WhatsApp instead of sending"
    )

    # MongoDB Configuration
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    mongodb_database: str = Field(
        default="smartlife",
        description="MongoDB database name"
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=5000)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = Field(default="INFO")

    # Authentication
    jwt_secret: str = Field(
        default="change-me-in-production",
        description="HMAC secret used to sign access tokens"
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_days: int = Field(default=30)
    password_reset_expire_minutes: int = Field(default=10)
    frontend_url: str = Field(default="http://localhost:5173")

    # AI assistant
    ai_provider: str = Field(
        default="mock",
        description="mock, huggingface or vectara"
    )
    huggingface_api_url: Optional[str] = Field(default=None)
    huggingface_api_key: Optional[str] = Field(default=None)
    vectara_api_url: str = Field(default="https://api.vectara.io/v2/query")
    vectara_api_key: Optional[str] = Field(default=None)
    vectara_corpus_key: Optional[str] = Field(default=None)
    ai_request_timeout: float = Field(default=30.0)

    # Email (SMTP)
    email_host: Optional[str] = Field(default=None)
    email_port: int = Field(default=587)
    email_user: Optional[str] = Field(default=None)
    email_pass: Optional[str] = Field(default=None)
    email_from_name: str = Field(default="SmartLife AI")

    # WhatsApp (Twilio)
    twilio_account_sid: Optional[str] = Field(default=None)
    twilio_auth_token: Optional[str] = Field(default=None)
    twilio_phone_number: Optional[str] = Field(default=None)

    # Records
    record_ttl_days: int = Field(
        default=30,
        description="Lifetime of recommendations, notifications and reports"
    )
    recommendation_limit: int = Field(default=3)
    reports_path: Optional[str] = Field(default=None)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    # Paths (computed)
    @property
    def project_root(self) -> Path:
        """Get project root directory."""
        return Path(__file__).parent.parent

    @property
    def data_dir(self) -> Path:
        """Get data directory path."""
        return self.project_root / "data"

    @property
    def reports_dir(self) -> Path:
        """Get generated reports directory path."""
        reports_path = Path(self.reports_path) if self.reports_path else self.project_root / "reports"
        reports_path.mkdir(parents=True, exist_ok=True)
        return reports_path

    class Config:
        env_file = Path(__file__).parent.parent / ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
