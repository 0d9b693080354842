"""
Runtime and deploy-time configuration, read from the environment.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION_STAGES = ("prod", "production")


class Settings(BaseSettings):
    STAGE: str = Field(default="dev", description="Deployment stage; 'prod' enables the CORS allow-list")
    REGION: str = Field(default="us-east-1", description="AWS region used in integration URIs")
    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    DEBUG: bool = Field(default=False, description="Return error details and tracebacks in 500 responses")

    OPERATION_ID: Optional[str] = Field(
        default=None, description="Sanitized operation id this function is bound to (set per binding)"
    )
    USER_POOL_ARN: Optional[str] = Field(default=None, description="Cognito user pool used by the authorizer")

    HANDLER: str = Field(default="handler.handler", description="Shared Lambda entry point for every operation")
    CODE_PATH: str = Field(default=".", description="Directory packaged as the Lambda code asset")
    PRODUCTION_ORIGINS: List[str] = Field(
        default=["..."], description="Allowed CORS origins in production (placeholder until a domain exists)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        return self.STAGE.lower() in PRODUCTION_STAGES


@lru_cache
def get_settings() -> Settings:
    return Settings()
