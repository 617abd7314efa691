import os

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport

# The suite relies on a known CORS allow-list and an isolated database, so
# normalise the environment before the application module is imported.
ALLOWED_ORIGIN = "http://allowed.example"
os.environ["CORS_ORIGIN_PATTERNS"] = (
    f"{ALLOWED_ORIGIN}, https://*.games.example, http://localhost:[*]"
)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"
os.environ["LOG_JSON"] = "false"
os.environ.pop("LOG_FILE", None)
os.environ.pop("API_PREFIX", None)
os.environ.pop("DEFAULT_PAGE_SIZE", None)

from catalog_api import models  # noqa: E402
from catalog_api.database import Base  # noqa: E402
from catalog_api.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_db():
    engine = app.state.engine
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def db():
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed_games(db):
    """Populate the catalog with a handful of games."""

    games = [
        models.Game(name="Hollow Knight", star_rating=4.8, developer="Team Cherry", year=2017, finished=True),
        models.Game(name="Celeste", star_rating=4.5, developer="Maddy Makes Games", year=2018, finished=True),
        models.Game(name="Hades", star_rating=None, developer="Supergiant Games", year=2020, finished=False),
        models.Game(name="Hades II", star_rating=4.0, developer="Supergiant Games", year=2024, finished=False),
    ]
    db.add_all(games)
    db.commit()
    return {game.name: game.id for game in games}
