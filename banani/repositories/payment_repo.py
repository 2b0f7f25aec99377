from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId
from datetime import datetime, timezone
from typing import Optional
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from banani.db.mongo import store_unavailable
from banani.models.payment import PaymentMethodCreate, PaymentMethodInDB


class PaymentRepository:
    """
    Payment method records for entries.

    Records are scoped by entry and owner; they annotate how an entry was
    paid and never feed back into entry totals.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["payment_methods"]

    @staticmethod
    def _scope(entry_id: str, owner_id: str) -> dict:
        return {
            "entry_id": ObjectId(entry_id),
            "owner_id": ObjectId(owner_id)
        }

    async def create(
        self,
        entry_id: str,
        owner_id: str,
        payment: PaymentMethodCreate,
        payload: dict
    ) -> PaymentMethodInDB:
        """Create a payment record. ``payload`` is the validated method-specific fields."""
        now = datetime.now(timezone.utc)
        payment_dict = {
            **self._scope(entry_id, owner_id),
            "payment_method": payment.payment_method.value,
            **payload,
            "payment_received_date": payment.payment_received_date or now,
            "created_at": now,
            "updated_at": now
        }
        try:
            result = await self.collection.insert_one(payment_dict)
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        payment_dict["_id"] = result.inserted_id
        return PaymentMethodInDB(**payment_dict)

    async def list_by_entry(self, entry_id: str, owner_id: str) -> list[PaymentMethodInDB]:
        """List payment records for an entry, newest first."""
        if not ObjectId.is_valid(entry_id):
            return []
        try:
            cursor = self.collection.find(self._scope(entry_id, owner_id)).sort("created_at", -1)
            docs = await cursor.to_list(None)
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        return [PaymentMethodInDB(**doc) for doc in docs]

    async def get_by_id(self, payment_id: str, entry_id: str, owner_id: str) -> Optional[PaymentMethodInDB]:
        if not (ObjectId.is_valid(payment_id) and ObjectId.is_valid(entry_id)):
            return None
        try:
            doc = await self.collection.find_one({
                "_id": ObjectId(payment_id),
                **self._scope(entry_id, owner_id)
            })
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        if doc:
            return PaymentMethodInDB(**doc)
        return None

    async def update(
        self,
        payment_id: str,
        entry_id: str,
        owner_id: str,
        payment: PaymentMethodCreate,
        payload: dict
    ) -> Optional[PaymentMethodInDB]:
        """Replace a payment record's method and payload."""
        if not (ObjectId.is_valid(payment_id) and ObjectId.is_valid(entry_id)):
            return None
        updates = {
            "payment_method": payment.payment_method.value,
            **payload,
            "updated_at": datetime.now(timezone.utc)
        }
        if payment.payment_received_date:
            updates["payment_received_date"] = payment.payment_received_date
        try:
            result = await self.collection.find_one_and_update(
                {
                    "_id": ObjectId(payment_id),
                    **self._scope(entry_id, owner_id)
                },
                {"$set": updates},
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        if result:
            return PaymentMethodInDB(**result)
        return None

    async def delete(self, payment_id: str, entry_id: str, owner_id: str) -> bool:
        if not (ObjectId.is_valid(payment_id) and ObjectId.is_valid(entry_id)):
            return False
        try:
            result = await self.collection.delete_one({
                "_id": ObjectId(payment_id),
                **self._scope(entry_id, owner_id)
            })
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        return result.deleted_count > 0
