"""Application configuration.

Values come from the environment, with a local ``.env`` file loaded first
when present. ``postgres://`` URLs are rewritten to the dialect name that
SQLAlchemy expects.
"""

import os
from typing import List

from dotenv import load_dotenv


DEFAULT_SQLITE_URL = "sqlite:///./school.db"
DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000"


def _normalise_db_url(url: str) -> str:
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


class Config:
    """Settings read once from the environment.

    Instantiate after the environment is prepared (tests set ``DATABASE_URL``
    before importing the app).
    """

    def __init__(self) -> None:
        load_dotenv()
        self.DATABASE_URL: str = _normalise_db_url(
            os.getenv("DATABASE_URL", DEFAULT_SQLITE_URL)
        )
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "change-this-secret-in-prod")
        self.ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_DAYS: int = int(
            os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7")
        )
        self.PORT: int = int(os.getenv("PORT", "5000"))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.CORS_ORIGINS: List[str] = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
            if origin.strip()
        ]


settings = Config()
