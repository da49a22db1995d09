from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Key material (PEM files)
    CA_CERT: str
    RESPONDER_CERT: str
    RESPONDER_KEY: str
    RESPONDER_KEY_PASSWORD: Optional[str] = None

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8889
    PROJECT_NAME: str = "OCSP Responder"

    # Database
    DATABASE_URL: str = "sqlite:///./dev.sqlite"
    DATABASE_TIMEOUT_SECONDS: float = 5.0

    # OCSP
    OCSP_SIGNATURE_HASH: str = "sha256"
    OCSP_NEXT_UPDATE_SECONDS: Optional[int] = None  # unset = no nextUpdate in responses
    OCSP_RESPONSE_TIMEOUT_SECONDS: Optional[float] = 10.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT: int = 5

    class Config:
        # custom.env overrides default.env, environment overrides both
        env_file = ("default.env", "custom.env")
        case_sensitive = True
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
