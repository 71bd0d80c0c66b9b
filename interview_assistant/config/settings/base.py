import logging
import pathlib

import decouple
import pydantic
from pydantic_settings import BaseSettings

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).parent.parent.parent.parent.resolve()


class BackendBaseSettings(BaseSettings):
    TITLE: str = "Interview Assistant Backend API"
    VERSION: str = "0.1.0"
    TIMEZONE: str = "UTC"
    DESCRIPTION: str | None = None
    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"  # Default environment, overridden by subclasses

    SERVER_HOST: str = decouple.config("BACKEND_SERVER_HOST", cast=str, default="127.0.0.1")  # type: ignore
    SERVER_PORT: int = decouple.config("BACKEND_SERVER_PORT", cast=int, default=5000)  # type: ignore
    SERVER_WORKERS: int = decouple.config("BACKEND_SERVER_WORKERS", cast=int, default=1)  # type: ignore
    API_PREFIX: str = "/api"
    DOCS_URL: str = "/docs"
    OPENAPI_URL: str = "/openapi.json"
    REDOC_URL: str = "/redoc"

    # A full URL wins over the POSTGRES_* parts (used for sqlite in tests and local runs)
    DB_URL: str = decouple.config("DATABASE_URL", cast=str, default="")  # type: ignore
    DB_POSTGRES_HOST: str = decouple.config("POSTGRES_HOST", cast=str, default="localhost")  # type: ignore
    DB_MAX_POOL_CON: int = decouple.config("DB_MAX_POOL_CON", cast=int, default=80)  # type: ignore
    DB_POSTGRES_NAME: str = decouple.config("POSTGRES_DB", cast=str, default="interview_assistant")  # type: ignore
    DB_POSTGRES_PASSWORD: str = decouple.config("POSTGRES_PASSWORD", cast=str, default="postgres")  # type: ignore
    DB_POOL_SIZE: int = decouple.config("DB_POOL_SIZE", cast=int, default=20)  # type: ignore
    DB_POOL_OVERFLOW: int = decouple.config("DB_POOL_OVERFLOW", cast=int, default=10)  # type: ignore
    DB_POSTGRES_PORT: int = decouple.config("POSTGRES_PORT", cast=int, default=5432)  # type: ignore
    DB_POSTGRES_SCHEMA: str = decouple.config("POSTGRES_SCHEMA", cast=str, default="postgresql")  # type: ignore
    DB_TIMEOUT: int = decouple.config("DB_TIMEOUT", cast=int, default=30)  # type: ignore
    DB_POSTGRES_USERNAME: str = decouple.config("POSTGRES_USERNAME", cast=str, default="postgres")  # type: ignore
    DB_POSTGRES_SSL: bool = decouple.config("POSTGRES_SSL", cast=bool, default=False)  # type: ignore

    IS_DB_ECHO_LOG: bool = decouple.config("IS_DB_ECHO_LOG", cast=bool, default=False)  # type: ignore
    IS_DB_EXPIRE_ON_COMMIT: bool = decouple.config("IS_DB_EXPIRE_ON_COMMIT", cast=bool, default=False)  # type: ignore
    IS_DB_AUTO_CREATE_TABLES: bool = decouple.config("IS_DB_AUTO_CREATE_TABLES", cast=bool, default=False)  # type: ignore

    IS_ALLOWED_CREDENTIALS: bool = decouple.config("IS_ALLOWED_CREDENTIALS", cast=bool, default=True)  # type: ignore
    FRONTEND_URL: str = decouple.config("FRONTEND_URL", cast=str, default="")  # type: ignore
    ALLOWED_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",  # Vite default port
        "http://127.0.0.1:5173",
    ]
    ALLOWED_METHODS: list[str] = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    ALLOWED_HEADERS: list[str] = ["Content-Type", "Authorization"]

    LOGGING_LEVEL: int = logging.INFO
    LOGGERS: tuple[str, str] = ("uvicorn.asgi", "uvicorn.access")

    OPENAI_MODEL: str = decouple.config("OPENAI_MODEL", cast=str, default="gpt-4o-mini")  # type: ignore
    OPENAI_API_KEY: str = decouple.config("OPENAI_API_KEY", cast=str, default="")  # type: ignore
    # Request-level timeout for the OpenAI client, in seconds
    OPENAI_TIMEOUT_SECONDS: float = decouple.config("OPENAI_TIMEOUT_SECONDS", cast=float, default=30.0)  # type: ignore
    # Wait before the single retry that follows an HTTP 429 from the provider
    LLM_RATE_LIMIT_BACKOFF_SECONDS: float = decouple.config("LLM_RATE_LIMIT_BACKOFF_SECONDS", cast=float, default=10.0)  # type: ignore
    USE_LLM_QUESTIONS: bool = decouple.config("USE_LLM_QUESTIONS", cast=bool, default=False)  # type: ignore

    # Interview shape: six questions, two per tier
    DIFFICULTY_SEQUENCE: tuple[str, ...] = ("easy", "easy", "medium", "medium", "hard", "hard")
    DIFFICULTY_TIME_LIMITS: dict[str, int] = {"easy": 20, "medium": 60, "hard": 120}
    DIFFICULTY_POINTS: dict[str, int] = {"easy": 10, "medium": 20, "hard": 30}

    SESSION_TTL_HOURS: int = decouple.config("SESSION_TTL_HOURS", cast=int, default=24)  # type: ignore

    model_config = pydantic.ConfigDict(
        case_sensitive=True,
        env_file=f"{str(ROOT_DIR)}/.env",
        validate_assignment=True,
        extra="allow",
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "PROD"

    @property
    def set_backend_app_attributes(self) -> dict[str, str | bool | None]:
        """
        Set all `FastAPI` class' attributes with the custom values defined in `BackendBaseSettings`.
        """
        return {
            "title": self.TITLE,
            "version": self.VERSION,
            "debug": self.DEBUG,
            "description": self.DESCRIPTION,
            "docs_url": self.DOCS_URL,
            "openapi_url": self.OPENAPI_URL,
            "redoc_url": self.REDOC_URL,
        }

    @property
    def cors_origins(self) -> list[str]:
        if self.FRONTEND_URL:
            return [*self.ALLOWED_ORIGINS, self.FRONTEND_URL]
        return self.ALLOWED_ORIGINS
