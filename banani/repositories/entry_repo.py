from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId
from datetime import datetime, timezone
from typing import Optional
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from banani.core.logging_config import get_logger
from banani.db.mongo import store_unavailable
from banani.models.entry import EntryDraft, EntryInDB

logger = get_logger(__name__)

# Client-editable fields plus the derived totals; never owner or timestamps.
ENTRY_FIELDS = {
    "date",
    "dealer_name",
    "location",
    "vehicle_number",
    "columns",
    "grand_total",
    "rate_per_20kg",
    "payment_due_date",
    "total_earned",
}


def _entry_document(draft: EntryDraft) -> dict:
    """Storage shape: ISO date strings, plain numbers, camelCase column keys."""
    return draft.model_dump(mode="json", by_alias=True, include=ENTRY_FIELDS)


class EntryRepository:
    """Entry database operations. Every query is scoped to the owner."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["entries"]
        self.payments = db["payment_methods"]

    async def create(self, draft: EntryDraft, owner_id: str) -> EntryInDB:
        """Persist a normalised draft for an owner."""
        now = datetime.now(timezone.utc)
        entry_dict = _entry_document(draft)
        entry_dict.update({
            "owner_id": ObjectId(owner_id),
            "created_at": now,
            "updated_at": now
        })

        try:
            result = await self.collection.insert_one(entry_dict)
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        entry_dict["_id"] = result.inserted_id
        logger.info("Entry %s created for owner %s", result.inserted_id, owner_id)
        return EntryInDB(**entry_dict)

    async def get_by_id(self, entry_id: str, owner_id: str) -> Optional[EntryInDB]:
        """Get an entry if it belongs to the owner."""
        if not ObjectId.is_valid(entry_id):
            return None
        try:
            doc = await self.collection.find_one({
                "_id": ObjectId(entry_id),
                "owner_id": ObjectId(owner_id)
            })
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        if doc:
            return EntryInDB(**doc)
        return None

    async def list_by_owner(self, owner_id: str) -> list[EntryInDB]:
        """List an owner's entries, newest date first."""
        try:
            cursor = self.collection.find({
                "owner_id": ObjectId(owner_id)
            }).sort([("date", -1), ("created_at", -1)])
            docs = await cursor.to_list(None)
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        return [EntryInDB(**doc) for doc in docs]

    async def update(self, entry_id: str, draft: EntryDraft, owner_id: str) -> Optional[EntryInDB]:
        """Replace an entry's contents. Edits are full replacements, not field patches."""
        if not ObjectId.is_valid(entry_id):
            return None
        updates = _entry_document(draft)
        updates["updated_at"] = datetime.now(timezone.utc)
        try:
            result = await self.collection.find_one_and_update(
                {
                    "_id": ObjectId(entry_id),
                    "owner_id": ObjectId(owner_id)
                },
                {"$set": updates},
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        if result:
            return EntryInDB(**result)
        return None

    async def delete(self, entry_id: str, owner_id: str) -> bool:
        """
        Permanently delete an entry and the owner's payment records for it.

        Payments are removed first. If that fails the entry is left untouched.
        """
        if not ObjectId.is_valid(entry_id):
            return False
        scope = {"owner_id": ObjectId(owner_id)}
        try:
            await self.payments.delete_many({"entry_id": ObjectId(entry_id), **scope})
            result = await self.collection.delete_one({"_id": ObjectId(entry_id), **scope})
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        if result.deleted_count == 0:
            return False
        logger.info("Entry %s deleted for owner %s", entry_id, owner_id)
        return True
