import os
from dataclasses import dataclass, field
from typing import List


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Settings:
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    DB_PATH: str = os.getenv("DB_PATH", "./app.db")

    # единственный email, которому админка положена без записи в admin_users
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@wastewise.org")

    # верхняя граница на любой вызов хранилища из use cases
    STORE_TIMEOUT_SEC: float = float(os.getenv("STORE_TIMEOUT_SEC", "5.0"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: List[str] = field(
        default_factory=lambda: _split_origins(
            os.getenv("CORS_ORIGINS", "http://localhost:8000,http://localhost:5173")
        )
    )


settings = Settings()
