import os
from uuid import uuid4

import pytest

TEST_SECRET = "test-secret-key-for-tutor-ledger-0123456789"

os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("IS_TESTING", "1")
os.environ.setdefault("JWT_SECRET", TEST_SECRET)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from fastapi.testclient import TestClient  # noqa: E402

from tutorledger.config import Settings  # noqa: E402
from tutorledger.guest import models as _guest_models  # noqa: E402,F401
from tutorledger.identity.security import create_access_token  # noqa: E402
from tutorledger.ledger.application.services import LedgerService  # noqa: E402
from tutorledger.ledger.infrastructure import models as _ledger_models  # noqa: E402,F401
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork  # noqa: E402
from tutorledger.shared.database import Base, build_engine, build_session_factory  # noqa: E402

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def make_settings(database_url: str = MEMORY_URL, **overrides) -> Settings:
    values = dict(
        environment="local",
        is_testing=True,
        database_url=database_url,
        jwt_secret=TEST_SECRET,
        log_format="console",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
async def engine(settings):
    engine = build_engine(settings.database_url, settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def uow(session, settings) -> LedgerUnitOfWork:
    return LedgerUnitOfWork(session, page_size=settings.search_page_size)


@pytest.fixture
def ledger(uow) -> LedgerService:
    return LedgerService(uow)


@pytest.fixture
def owner_a():
    return uuid4()


@pytest.fixture
def owner_b():
    return uuid4()


# ---- HTTP ----------------------------------------------------------------------

@pytest.fixture
def api_settings(tmp_path) -> Settings:
    # TestClient runs the app on its own event loop; a file store lets the
    # app's lifespan own the engine.
    return make_settings(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")


@pytest.fixture
def client(api_settings):
    from tutorledger.main import create_app

    with TestClient(create_app(api_settings)) as c:
        yield c


@pytest.fixture
def auth_headers(api_settings):
    def _headers(owner_id):
        token = create_access_token(owner_id, settings=api_settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers
