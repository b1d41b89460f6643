"""Environment-driven settings for the judge API and its worker pool"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import URL

BACKEND_DIR = Path(__file__).resolve().parent.parent
DEFAULT_LOG_FILE = BACKEND_DIR.parent / "logs" / "codearena.log"

_PLACEHOLDER_SECRETS = frozenset({
    "",
    "change-me",
    "dev-secret-key-change-in-production-use-openssl-rand-hex-32",
})
_MIN_SECRET_LENGTH = 32


def _split_origins(raw: str) -> List[str]:
    """CORS origins from either a JSON list/string or a comma separated value."""
    raw = raw.strip()
    if raw.startswith(("[", '"')):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, str):
            decoded = [decoded]
        if isinstance(decoded, list):
            return [str(item).strip() for item in decoded if str(item).strip()]
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    APP_NAME: str = "CodeArena Judge"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["http://localhost:3000"]

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # DATABASE_URL wins over the POSTGRES_* parts when set
    DATABASE_URL: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "codearena_db"
    POSTGRES_USER: str = "codearena"
    POSTGRES_PASSWORD: str = "codearena"
    DATABASE_POOL_SIZE: int = 30
    DATABASE_MAX_OVERFLOW: int = 20
    DB_INIT_MODE: str = "migrate"  # migrate | create_all | off
    DB_REQUIRE_HEAD: bool = True

    SECRET_KEY: str = "dev-secret-key-change-in-production-use-openssl-rand-hex-32"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 180

    # Remote sandbox speaking the Judge0 submissions API
    JUDGE0_API_URL: str = "https://ce.judge0.com"
    JUDGE0_API_KEY: str = ""
    JUDGE0_API_HOST: str = ""
    JUDGE0_SUBMIT_TIMEOUT_SECONDS: float = 15.0
    JUDGE0_POLL_TIMEOUT_SECONDS: float = 10.0

    JUDGE_POLL_INTERVAL_SECONDS: float = 1.5
    JUDGE_POLL_MAX_ROUNDS: int = 20
    EXECUTION_MAX_PARALLEL: int = 8
    SAMPLE_RUN_LIMIT: int = 3
    MAX_CODE_SIZE: int = 65536  # bytes, UTF-8

    RUN_EMBEDDED_WORKER: bool = True
    WORKER_CONCURRENCY: int = 4
    WORKER_POLL_INTERVAL_SECONDS: float = 1.0
    WORKER_LEASE_SECONDS: int = 120
    WORKER_MAX_RETRIES: int = 2
    WORKER_RETRY_BACKOFF_SECONDS: float = 10.0  # multiplied by the attempt number
    MAX_QUEUE_DEPTH: int = 500

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _coerce_origins(cls, value: Any) -> Any:
        return _split_origins(value) if isinstance(value, str) else value

    @field_validator("JUDGE0_API_URL")
    @classmethod
    def _normalize_judge0_url(cls, value: str) -> str:
        value = value.strip()
        if value and "://" not in value:
            value = f"http://{value}"
        return value.rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.strip().lower() == "production"

    def get_log_file(self) -> str:
        """LOG_FILE, or the repo-level logs/ file when unset or pointing outside."""
        if self.LOG_FILE and not self.LOG_FILE.startswith(".."):
            return self.LOG_FILE
        return str(DEFAULT_LOG_FILE)

    def get_database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        url = URL.create(
            "postgresql",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            database=self.POSTGRES_DB,
        )
        return url.render_as_string(hide_password=False)

    def validate_security_settings(self) -> None:
        """Refuse to boot a production deployment on a placeholder or short SECRET_KEY.

        Raises:
            ValueError: when the key would let anyone mint valid tokens.
        """
        if not self.is_production:
            return
        if self.SECRET_KEY in _PLACEHOLDER_SECRETS or len(self.SECRET_KEY) < _MIN_SECRET_LENGTH:
            raise ValueError(
                f"SECRET_KEY must be a non-default value of at least {_MIN_SECRET_LENGTH} "
                "characters when ENVIRONMENT=production"
            )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
