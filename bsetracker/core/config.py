from typing import List, Optional, Union
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from urllib.parse import quote_plus
from enum import Enum
import json


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    # Environment Configuration
    ENVIRONMENT: Environment = Environment.DEVELOPMENT

    # Project Information
    PROJECT_NAME: str = "BSE Tracker"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"

    # Server settings
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # Database - PostgreSQL in deployed environments, SQLite file for local runs
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    SQLALCHEMY_DATABASE_URI: Optional[str] = None

    # API key protection for service-to-service calls (scheduler trigger, profile edit flow)
    VALID_API_KEYS: Union[List[str], str] = []
    REQUIRE_API_KEY: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("VALID_API_KEYS", mode="before")
    @classmethod
    def parse_api_keys(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return []
            try:
                parsed = json.loads(v)
            except (json.JSONDecodeError, TypeError):
                # Fallback: treat as comma-separated string
                return [key.strip() for key in v.split(",") if key.strip()]
            return [parsed] if isinstance(parsed, str) else parsed
        return v

    @model_validator(mode="after")
    def _derive_database_uri(self) -> "Settings":
        if self.SQLALCHEMY_DATABASE_URI:
            return self
        if self.POSTGRES_USER and self.POSTGRES_SERVER and self.POSTGRES_DB:
            safe_user = quote_plus(self.POSTGRES_USER)
            if self.POSTGRES_PASSWORD:
                safe_password = quote_plus(self.POSTGRES_PASSWORD)
                self.SQLALCHEMY_DATABASE_URI = (
                    f"postgresql://{safe_user}:{safe_password}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
                )
            else:
                self.SQLALCHEMY_DATABASE_URI = (
                    f"postgresql://{safe_user}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
                )
        else:
            self.SQLALCHEMY_DATABASE_URI = "sqlite:///./bsetracker.db"
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    @model_validator(mode="after")
    def validate_environment_config(self):
        """Validate environment-specific configuration requirements"""
        if self.is_production:
            if self.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
                raise ValueError("Production requires a PostgreSQL database")
            if self.REQUIRE_API_KEY and not self.VALID_API_KEYS:
                raise ValueError("VALID_API_KEYS must be set in production")
        return self

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


settings = Settings()
