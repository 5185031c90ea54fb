import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock
from httpx import AsyncClient, ASGITransport

from fuelsplit.core.config import settings
from fuelsplit.core.participants import Participants
from fuelsplit.models.ledger import LedgerState

from tests.constants import ACCESS_CODES, AMIT, JOHN


def _mock_collection():
    """Mock Motor collection with async write methods and a chainable cursor."""
    collection = MagicMock()
    collection.find_one = AsyncMock()
    collection.replace_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.create_index = AsyncMock()

    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value = cursor
    collection.cursor = cursor
    return collection


@pytest.fixture
def participants():
    """The two participants with their access codes."""
    return Participants.from_config([AMIT, JOHN], ACCESS_CODES)


@pytest.fixture
def initial_state(participants):
    """Ledger awaiting its first reading, 0.5 per km."""
    return LedgerState.initial(participants, 0.5)


@pytest.fixture
def mock_db():
    """Mock MongoDB database whose collections are looked up by name."""
    collections = {
        settings.STATE_COLLECTION: _mock_collection(),
        settings.HISTORY_COLLECTION: _mock_collection(),
    }
    db = MagicMock()
    db.__getitem__.side_effect = collections.__getitem__
    db.state = collections[settings.STATE_COLLECTION]
    db.history = collections[settings.HISTORY_COLLECTION]
    return db


@pytest_asyncio.fixture
async def client():
    """Async HTTP client bound to the app (no Mongo connection is opened)."""
    from fuelsplit.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
