import pytest

from src.shared.infrastructure.database.base_model import Base
from src.shared.infrastructure.database.session import DatabaseSessionFactory
from src.shared.model_loader import import_all_models

import_all_models()


@pytest.fixture
async def db():
    factory = DatabaseSessionFactory("sqlite+aiosqlite:///:memory:")
    async with factory.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield factory
    await factory.dispose()


@pytest.fixture
async def session(db):
    async with db.session_factory() as s:
        yield s
        await s.rollback()
