from pydantic import BaseModel, EmailStr, Field, ConfigDict
from datetime import datetime
from enum import Enum
from typing import Optional
from bson import ObjectId


class Language(str, Enum):
    ENGLISH = "en"
    GUJARATI = "gu"
    HINDI = "hi"


class UserBase(BaseModel):
    """Base user schema."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: EmailStr

class UserCreate(UserBase):
    """User creation schema."""
    password: str = Field(..., min_length=8, max_length=72)

class UserUpdate(BaseModel):
    """User update schema."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    language: Optional[Language] = None

class UserResponse(UserBase):
    """User response schema."""
    id: str = Field(validation_alias="_id", serialization_alias="id")
    language: Language = Language.ENGLISH
    created_at: datetime
    updated_at: datetime
    
    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )

    @property
    def display_name(self) -> str:
        return display_name(self.first_name, self.email)

class UserInDB(BaseModel):
    """User database schema."""
    id: ObjectId = Field(alias="_id")
    first_name: str
    last_name: Optional[str] = None
    email: str
    language: Language = Language.ENGLISH
    password_hash: str
    is_deleted: bool = False
    created_at: datetime
    updated_at: datetime
    
    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        arbitrary_types_allowed=True
    )
    
    @property
    def _id(self) -> ObjectId:
        """Alias for id to match MongoDB naming."""
        return self.id


def display_name(first_name: Optional[str], email: str) -> str:
    """Name used in greetings: first name, else the capitalised mailbox name."""
    if first_name:
        return first_name
    local_part = email.split("@")[0]
    return local_part[:1].upper() + local_part[1:] if local_part else "User"
