from fastapi import APIRouter, Depends, HTTPException, status

from banani.core.auth import get_current_user, to_user_response
from banani.db.mongo import get_db
from banani.models.user import UserResponse, UserUpdate
from banani.repositories.user_repo import UserRepository

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_my_profile(current_user: UserResponse = Depends(get_current_user)):
    """Get current user profile"""
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_my_profile(
    user_update: UserUpdate,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Update name and preferred language."""
    update_data = user_update.model_dump(exclude_unset=True, exclude_none=True, mode="json")
    if not update_data:
        return current_user

    user = await UserRepository(db).update_user(current_user.id, update_data)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return to_user_response(user)
