from typing import Literal
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="SCIM_", case_sensitive=False, extra="ignore")

    # Application Configuration
    app_name: str = Field("scimcore", description="Application name")
    environment: str = Field("development", description="Environment (development, staging, production)")
    debug: bool = Field(True, description="Debug mode")
    log_level: str = Field("INFO", description="Logging level")

    # API Configuration
    api_prefix: str = Field("/scim/v2", description="API route prefix")
    max_page_size: int = Field(1000, description="Largest count a query may request")

    # Persistence
    repository_backend: Literal["memory", "tortoise"] = Field("memory", description="Resource store backing the providers")
    database_url: str = Field("sqlite://scimcore.sqlite3", description="Database URL used by the tortoise backend")
    repository_timeout: float = Field(30.0, gt=0, description="Seconds allowed for a single repository call")

    # Server
    host: str = Field("0.0.0.0", description="Server host")
    port: int = Field(8000, description="Server port")
    reload: bool = Field(True, description="Enable auto-reload")

    @field_validator("environment")
    def validate_environment(cls, v: str) -> str:
        allowed = ["development", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def tortoise_orm_config(self) -> dict:
        return {
            "connections": {"default": self.database_url},
            "apps": {
                "models": {
                    "models": ["scimcore.models"],
                    "default_connection": "default",
                }
            },
            "use_tz": True,
            "timezone": "UTC",
        }


# Create a singleton instance
settings = Settings()
