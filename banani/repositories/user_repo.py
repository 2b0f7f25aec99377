from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId
from datetime import datetime, timezone
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from banani.core.security import hash_password
from banani.db.mongo import store_unavailable
from banani.models.user import UserCreate, UserInDB, Language

class UserRepository:
    """User database operations."""
    
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["users"]
    
    async def create_user(self, user_data: UserCreate) -> UserInDB:
        """Create a new user."""
        user_dict = {
            "first_name": user_data.first_name,
            "last_name": user_data.last_name,
            "email": user_data.email,
            "language": Language.ENGLISH.value,
            "password_hash": hash_password(user_data.password),
            "is_deleted": False,
            "created_at": datetime.now(timezone.utc),
            "updated_at": datetime.now(timezone.utc)
        }
        
        try:
            result = await self.collection.insert_one(user_dict)
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        user_dict["_id"] = result.inserted_id
        return UserInDB(**user_dict)
    
    async def get_user_by_email(self, email: str) -> UserInDB | None:
        """Get user by email."""
        try:
            user = await self.collection.find_one({"email": email, "is_deleted": False})
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        if user:
            return UserInDB(**user)
        return None
    
    async def get_user_by_id(self, user_id: str) -> UserInDB | None:
        """Get user by ID."""
        if not ObjectId.is_valid(user_id):
            return None
        try:
            user = await self.collection.find_one({
                "_id": ObjectId(user_id),
                "is_deleted": False
            })
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        if user:
            return UserInDB(**user)
        return None
    
    async def update_user(self, user_id: str, update_data: dict) -> UserInDB | None:
        """Update user."""
        if not ObjectId.is_valid(user_id):
            return None
        update_data["updated_at"] = datetime.now(timezone.utc)
        try:
            result = await self.collection.find_one_and_update(
                {"_id": ObjectId(user_id), "is_deleted": False},
                {"$set": update_data},
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as exc:
            raise store_unavailable(exc) from exc
        if result:
            return UserInDB(**result)
        return None

    async def update_password(self, user_id: str, new_password: str) -> bool:
        """Store a new password hash."""
        user = await self.update_user(user_id, {"password_hash": hash_password(new_password)})
        return user is not None
