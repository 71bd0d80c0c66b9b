import contextlib
import logging
import typing

import fastapi

from interview_assistant.config.manager import settings
from interview_assistant.models.db import interview, question_slot, session, user  # noqa: F401  registers tables
from interview_assistant.repository.database import async_db
from interview_assistant.repository.table import Base

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOGGING_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for logger_name in settings.LOGGERS:
        logging.getLogger(logger_name).setLevel(settings.LOGGING_LEVEL)


async def initialize_db_tables() -> None:
    logger.info("Creating database tables")
    async with async_db.async_engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


async def dispose_db_connection() -> None:
    logger.info("Disposing database connection pool")
    await async_db.async_engine.dispose()


@contextlib.asynccontextmanager
async def lifespan(backend_app: fastapi.FastAPI) -> typing.AsyncIterator[None]:
    configure_logging()
    logger.info("Starting %s (%s)", settings.TITLE, settings.ENVIRONMENT)
    if settings.IS_DB_AUTO_CREATE_TABLES:
        await initialize_db_tables()
    yield
    await dispose_db_connection()
