import os
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

from .url_parser import parser

load_dotenv()


class Settings(BaseSettings):
    PROJECT_NAME: str = "Property Rental Management API"
    API_PREFIX: str = "/api/v1"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    PORT: int = 8000
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL", "sqlite+aiosqlite:///./rental.db"
    )
    AUTO_CREATE_TABLES: bool = False

    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "change-me-access")
    JWT_REFRESH_SECRET_KEY: str = os.getenv(
        "JWT_REFRESH_SECRET_KEY", "change-me-refresh"
    )
    ALGORITHM: str = "HS256"
    ACCESS_EXPIRE_MINUTES: int = 60
    REFRESH_EXPIRE_DAYS: int = 30
    REFRESH_COOKIE_NAME: str = "refresh_token"
    SECURE_COOKIES: bool = False  # must be false on localhost

    CLOUDINARY_CLOUD_NAME: str | None = os.getenv("CLOUDINARY_CLOUD_NAME")
    CLOUDINARY_API_KEY: str | None = os.getenv("CLOUDINARY_API_KEY")
    CLOUDINARY_API_SECRET: str | None = os.getenv("CLOUDINARY_API_SECRET")
    CLOUDINARY_FOLDER: str = "rental"

    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_MB: int = 5

    SEED_ADMIN_EMAIL: str | None = os.getenv("SEED_ADMIN_EMAIL")
    SEED_ADMIN_PASSWORD: str | None = os.getenv("SEED_ADMIN_PASSWORD")

    ALLOWED_ORIGINS_RAW: str = os.getenv("ALLOWED_ORIGINS", "")

    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        return parser.parse_url_list(self.ALLOWED_ORIGINS_RAW, "ALLOWED_ORIGINS")

    @property
    def MAX_UPLOAD_BYTES(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024

    class Config:
        env_file = ".env"
        extra = "ignore"
        case_sensitive = False


settings = Settings()
