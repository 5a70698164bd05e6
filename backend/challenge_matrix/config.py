from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "challenge-matrix-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Challenge Matrix")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/challenge_matrix_dev")
    sql_echo: bool = os.getenv("SQL_ECHO", "0") == "1"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Tokens
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    access_ttl_min: int = int(os.getenv("ACCESS_TTL_MIN", "15"))
    refresh_ttl_min: int = int(os.getenv("REFRESH_TTL_MIN", "10080"))  # 7d

    # Object storage (S3 API)
    s3_endpoint: str = os.getenv("S3_ENDPOINT", "http://minio:9000")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "minioadmin")
    s3_bucket_uploads: str = os.getenv("S3_BUCKET_UPLOADS", "challenge-matrix-uploads-dev")
    s3_public_base_url: str = os.getenv("S3_PUBLIC_BASE_URL", "http://localhost:9000")
    screenshot_max_bytes: int = int(os.getenv("SCREENSHOT_MAX_BYTES", str(10 * 1024 * 1024)))
    avatar_max_bytes: int = int(os.getenv("AVATAR_MAX_BYTES", str(5 * 1024 * 1024)))

    # Wall clock for challenge dates and daily submission windows
    challenge_timezone: str = os.getenv("CHALLENGE_TIMEZONE", "Africa/Abidjan")

    # Role/profile check on session load
    role_check_retries: int = int(os.getenv("ROLE_CHECK_RETRIES", "3"))
    role_check_delay_seconds: float = float(os.getenv("ROLE_CHECK_DELAY_SECONDS", "1.0"))

    # Bootstrap admin account (scripts/create_admin.py)
    admin_email: str = os.getenv("ADMIN_EMAIL", "admin@matrix-challenge.com")
    admin_password: str = os.getenv("ADMIN_PASSWORD", "Admin123!")

settings = Settings()
