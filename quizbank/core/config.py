from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # JWT
    # only the API needs it; the offline CLI runs without
    JWT_SECRET_KEY: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Banco de dados
    DATABASE_URL: str = "sqlite:///./quizbank.db"
    SQL_ECHO: bool = False

    # images
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024
    IMAGE_EXTENSIONS: List[str] = [".png", ".jpg", ".jpeg", ".webp"]

    CORS_ORIGINS: List[str] = [
        "http://localhost:5500",
        "http://127.0.0.1:5500",
    ]
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
