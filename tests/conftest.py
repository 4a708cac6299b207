import pytest
import pytest_asyncio

from lightsout.config import Config
from lightsout.data_models.scoring import PointsCatalog
from lightsout.database.database import Database
from lightsout.services.leaderboard import LeaderboardService
from lightsout.services.results_store import ResultsStore


@pytest.fixture(autouse=True)
def no_log_file(monkeypatch):
    monkeypatch.setattr(Config, "LOG_DIR", "")


@pytest.fixture
def catalog():
    return PointsCatalog.default()


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path}/league.db")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def store(database):
    return ResultsStore(database.session_factory, season="2026")


@pytest_asyncio.fixture
async def leaderboard_service(store):
    return LeaderboardService(store)
