from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    SECRET_KEY: str = "change-this-secret"
    TOKEN_TTL_MINUTES: int = 30
    BCRYPT_ROUNDS: int = 12
    COOKIE_SECURE: bool = False
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"
    SALES_LOCK_TIMEOUT_SECONDS: int = 10
    IMAGE_STORE_BASE_URL: str = "https://images.example.local"
    IMAGE_DEFAULT_FOLDER: str = "/products"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
