from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, status

from banani.core.auth import create_access_token, get_current_user, to_user_response
from banani.core.errors import AuthorizationFailure, ValidationFailure
from banani.core.logging_config import get_logger
from banani.core.security import verify_password
from banani.db.mongo import get_db
from banani.models.user import UserCreate, UserResponse, display_name
from banani.repositories.user_repo import UserRepository
from banani.schemas.auth import PasswordChange, TokenResponse, UserLogin
from banani.services.email_templates import NotificationKind
from banani.services.notifications import EmailNotifier, get_notifier

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: UserCreate,
    background_tasks: BackgroundTasks,
    db = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier)
):
    """Create a new user account."""
    user_repo = UserRepository(db)

    existing_user = await user_repo.get_user_by_email(user_data.email)
    if existing_user:
        raise ValidationFailure("Email already registered", code="EMAIL_TAKEN")

    user = await user_repo.create_user(user_data)
    logger.info("User %s signed up", user.id)

    background_tasks.add_task(
        notifier.notify,
        NotificationKind.SIGNUP,
        user.email,
        display_name(user.first_name, user.email),
        {"email": user.email}
    )

    return TokenResponse(
        access_token=create_access_token(str(user._id)),
        user=to_user_response(user)
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    background_tasks: BackgroundTasks,
    db = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier)
):
    """Login with email and password."""
    user_repo = UserRepository(db)

    user = await user_repo.get_user_by_email(credentials.email)
    if not user or not verify_password(credentials.password, user.password_hash):
        raise AuthorizationFailure("Invalid email or password", code="INVALID_CREDENTIALS")

    background_tasks.add_task(
        notifier.notify,
        NotificationKind.LOGIN,
        user.email,
        display_name(user.first_name, user.email),
        {"timestamp": datetime.now(timezone.utc).strftime("%d/%m/%Y %H:%M UTC")}
    )

    return TokenResponse(
        access_token=create_access_token(str(user._id)),
        user=to_user_response(user)
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: UserResponse = Depends(get_current_user)):
    """Get current user details."""
    return current_user


@router.post("/change-password")
async def change_password(
    password_data: PasswordChange,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Change the current user's password."""
    if password_data.new_password != password_data.confirm_password:
        raise ValidationFailure("Passwords do not match", code="PASSWORD_MISMATCH")

    user_repo = UserRepository(db)
    user = await user_repo.get_user_by_id(current_user.id)
    if user is None:
        raise AuthorizationFailure("User not found", code="UNKNOWN_USER")
    if not verify_password(password_data.current_password, user.password_hash):
        raise ValidationFailure("Current password is incorrect", code="INCORRECT_PASSWORD")

    await user_repo.update_password(current_user.id, password_data.new_password)
    return {"message": "Password changed successfully"}
