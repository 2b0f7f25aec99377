from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import AsyncClient, ASGITransport

from banani.main import app
from banani.core.auth import get_current_user
from banani.db.mongo import get_db
from banani.models.user import UserResponse
from banani.services.notifications import get_notifier

USER_ID = "507f1f77bcf86cd799439011"
ENTRY_ID = "507f1f77bcf86cd799439022"
PAYMENT_ID = "507f1f77bcf86cd799439033"

CREATED_AT = datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)


def make_collection():
    """A motor collection stand-in with the async methods the repositories use."""
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.delete_one = AsyncMock()
    collection.delete_many = AsyncMock()
    collection.create_index = AsyncMock()
    collection.find.return_value.sort.return_value.to_list = AsyncMock(return_value=[])
    return collection


def set_find_result(collection, docs):
    collection.find.return_value.sort.return_value.to_list.return_value = docs


@pytest.fixture
def mock_db():
    """Mock MongoDB database; db["name"] always returns the same collection mock."""
    collections = {}
    db = MagicMock()
    db.__getitem__.side_effect = lambda name: collections.setdefault(name, make_collection())
    return db


@pytest.fixture
def current_user():
    return UserResponse(
        id=USER_ID,
        first_name="Ravi",
        last_name="Patel",
        email="ravi@example.com",
        created_at=CREATED_AT,
        updated_at=CREATED_AT
    )


@pytest.fixture
def mock_notifier():
    notifier = MagicMock()
    notifier.notify.return_value = True
    return notifier


@pytest.fixture
def entry_doc():
    """Factory for a stored entry document: 15 kg at 400 per 20 kg."""
    def _make(**overrides):
        doc = {
            "_id": ObjectId(ENTRY_ID),
            "owner_id": ObjectId(USER_ID),
            "date": "2025-01-15",
            "dealer_name": "Shree Traders",
            "location": "Anand",
            "vehicle_number": "GJ01AB1234",
            "columns": [
                {
                    "columnNumber": 1,
                    "rows": [
                        {"weight": 10, "remark": "first load"},
                        {"weight": 5, "remark": ""}
                    ],
                    "columnTotal": 15
                }
            ],
            "grand_total": 15,
            "rate_per_20kg": 400,
            "payment_due_date": None,
            "total_earned": 300,
            "created_at": CREATED_AT,
            "updated_at": CREATED_AT
        }
        doc.update(overrides)
        return doc
    return _make


@pytest.fixture
def draft_body():
    """Factory for a draft as the form sends it."""
    def _make(weights=(10, 5), rate=400, **overrides):
        body = {
            "date": "2025-01-15",
            "dealer_name": "Shree Traders",
            "location": "Anand",
            "vehicle_number": "GJ01AB1234",
            "columns": [
                {
                    "columnNumber": 1,
                    "rows": [{"weight": weight, "remark": ""} for weight in weights],
                    "columnTotal": 0
                }
            ],
            "rate_per_20kg": rate,
            "payment_due_date": None
        }
        body.update(overrides)
        return body
    return _make


@pytest_asyncio.fixture
async def client(mock_db, current_user, mock_notifier):
    """Client authenticated as ``current_user`` with the store and mailer mocked."""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_notifier] = lambda: mock_notifier
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def anon_client(mock_db, mock_notifier):
    """Client without a session; authentication runs for real against the mocked store."""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_notifier] = lambda: mock_notifier
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()
