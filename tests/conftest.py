import os
import pathlib
import tempfile

# Settings are read at import time; point them at sqlite and keep the LLM offline
os.environ.setdefault("ENVIRONMENT", "DEV")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{pathlib.Path(tempfile.gettempdir()) / 'interview_assistant_tests.db'}"
os.environ["OPENAI_API_KEY"] = ""
os.environ["LLM_RATE_LIMIT_BACKOFF_SECONDS"] = "0"
os.environ["USE_LLM_QUESTIONS"] = "False"

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from interview_assistant.api.dependencies.session import get_async_session  # noqa: E402
from interview_assistant.main import initialize_backend_application  # noqa: E402
from interview_assistant.models.db import interview, question_slot, session, user  # noqa: E402,F401
from interview_assistant.repository.crud.interview import InterviewCRUDRepository  # noqa: E402
from interview_assistant.repository.crud.session import SessionCRUDRepository  # noqa: E402
from interview_assistant.repository.crud.user import UserCRUDRepository  # noqa: E402
from interview_assistant.repository.table import Base  # noqa: E402
from interview_assistant.services.interview_tracker import InterviewTracker  # noqa: E402


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
def user_repo(db_session) -> UserCRUDRepository:
    return UserCRUDRepository(async_session=db_session)


@pytest.fixture
def session_repo(db_session) -> SessionCRUDRepository:
    return SessionCRUDRepository(async_session=db_session)


@pytest.fixture
def interview_repo(db_session) -> InterviewCRUDRepository:
    return InterviewCRUDRepository(async_session=db_session)


@pytest.fixture
def tracker(interview_repo, user_repo) -> InterviewTracker:
    return InterviewTracker(interview_repo=interview_repo, user_repo=user_repo)


@pytest_asyncio.fixture
async def candidate(user_repo):
    saved, _ = await user_repo.save_user(
        name="Ada Lovelace",
        email="Ada@Example.com",
        phone="+1 555 010 0100",
        resume_data={"text": "Ada Lovelace\nReact developer"},
    )
    return saved


@pytest_asyncio.fixture
async def client(session_factory):
    async def _session_override():
        async with session_factory() as request_session:
            yield request_session

    app = initialize_backend_application()
    app.dependency_overrides[get_async_session] = _session_override
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
