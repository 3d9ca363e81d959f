# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def split_csv(value: Optional[str]) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


class Settings(BaseSettings):
    # App
    APP_NAME: str = "StaticSnack Commit API"
    APP_VERSION: str = "0.4.0"
    LOG_LEVEL: str = "INFO"
    ENV: str = "dev"

    # CORS
    CORS_ALLOW_ORIGINS: str = "http://localhost:5173"
    CORS_ALLOW_METHODS: str = "GET,POST,PUT,DELETE,OPTIONS"
    CORS_ALLOW_HEADERS: str = "Authorization,Content-Type,X-Client-Info,Apikey"

    # Auth (bearer JWTs issued by the identity platform)
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None
    JWT_JWKS_URL: Optional[str] = None
    JWT_SECRET: Optional[str] = None

    # GitHub App
    GITHUB_APP_ID: Optional[str] = None
    GITHUB_APP_PKEY: Optional[str] = None
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_HTTP_TIMEOUT: float = 30.0
    GITHUB_HTTP_RETRIES: int = 3
    TOKEN_CACHE_ENABLED: bool = True

    # Pipeline limits
    MAX_FILE_SIZE_BYTES: int = 10 * 1024 * 1024
    MAX_FILENAME_LENGTH: int = 255
    COMMIT_MAX_ATTEMPTS: int = 3

    # Storage
    STORE_BACKEND: str = "memory"  # or "redis"
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_PREFIX: str = "snack"

    # Rate limits / observability
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/minute"
    ENABLE_PROMETHEUS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def cors_origins(self) -> List[str]:
        return split_csv(self.CORS_ALLOW_ORIGINS)

    def cors_methods(self) -> List[str]:
        return split_csv(self.CORS_ALLOW_METHODS)

    def cors_headers(self) -> List[str]:
        return split_csv(self.CORS_ALLOW_HEADERS)
