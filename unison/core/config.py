"""
Application configuration using Pydantic BaseSettings,
supports both local .env files and AWS Secrets Manager.
"""

import io
import json
import os
from typing import List, Literal, Union

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    app_name: str = "Unison Identity API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Credential store
    storage_backend: Literal["json", "sql", "memory"] = Field(default="json")
    users_file: str = Field(default="users.json")
    database_url: str = Field(default="sqlite:///./unison.db")

    # AWS Configuration
    aws_region: str = Field(default="us-east-1")
    aws_secret_name: str = Field(default="unison-secrets")

    # CORS
    cors_origins: Union[str, List[str]] = Field(default=["*"])

    @field_validator("cors_origins", mode="after")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [v]
        return v

    # Logging
    log_level: str = Field(default="INFO")

    # Sessions
    secret_key: str = Field(default="your-secret-key-here-change-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_access_token_expire_minutes: int = Field(default=30)
    jwt_refresh_token_expire_days: int = Field(default=7)
    frontend_url: str = Field(default="http://localhost:5173")

    # OAuth providers
    google_client_id: str = Field(default="")
    google_client_secret: str = Field(default="")
    facebook_client_id: str = Field(default="")
    facebook_client_secret: str = Field(default="")
    github_client_id: str = Field(default="")
    github_client_secret: str = Field(default="")

    # Identity policy
    enforce_unique_phone: bool = Field(default=True)

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    def provider_configured(self, provider: str) -> bool:
        """Whether client credentials exist for an OAuth provider."""
        client_id = getattr(self, f"{provider}_client_id", "")
        client_secret = getattr(self, f"{provider}_client_secret", "")
        return bool(client_id and client_secret)

    def load_aws_secrets(self, secret_name: str = ""):
        from unison.core.unison_logger import UnisonLogger

        secret_name = secret_name or self.aws_secret_name
        try:
            client = boto3.client("secretsmanager", region_name=self.aws_region)
            secret_response = client.get_secret_value(SecretId=secret_name)
        except (BotoCoreError, ClientError) as e:
            UnisonLogger.error(f"Error loading secrets from AWS: {e}")
            return

        secret_string = secret_response.get("SecretString")
        if not secret_string:
            UnisonLogger.warning(f"No secret string found for {secret_name}")
            return

        # Try JSON parse first
        try:
            secret_data = json.loads(secret_string)
        except json.JSONDecodeError:
            # Fallback to .env format
            secret_data = {}
            for line in io.StringIO(secret_string):
                if line.strip() and not line.startswith("#"):
                    key, value = line.strip().split("=", 1)
                    secret_data[key.strip()] = value.strip()

        for key, value in secret_data.items():
            if hasattr(self, key.lower()):
                setattr(self, key.lower(), value)
            else:
                os.environ[key] = value  # fallback

        UnisonLogger.info(f"AWS secrets loaded from {secret_name}")


# Global settings instance
settings = Settings()
