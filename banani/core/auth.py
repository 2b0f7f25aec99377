from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from banani.core.config import settings
from banani.core.errors import AuthorizationFailure
from banani.db.mongo import get_db
from banani.repositories.user_repo import UserRepository
from banani.models.user import UserResponse

security = HTTPBearer(auto_error=False)

def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    """Create JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)
    
    now = datetime.now(timezone.utc)
    expire = now + expires_delta
    
    payload = {
        "sub": user_id,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp())
    }
    
    encoded_jwt = jwt.encode(
        payload,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM
    )
    return encoded_jwt

def decode_access_token(token: str) -> str:
    """Return the user id a token was issued for."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise AuthorizationFailure("Invalid token", code="INVALID_TOKEN")
    user_id = payload.get("sub")
    if user_id is None:
        raise AuthorizationFailure("Invalid token", code="INVALID_TOKEN")
    return user_id

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db = Depends(get_db)
) -> UserResponse:
    """Get current user from JWT token."""
    if credentials is None:
        raise AuthorizationFailure("Not authenticated", code="MISSING_SESSION")

    user_id = decode_access_token(credentials.credentials)
    
    user_repo = UserRepository(db)
    user = await user_repo.get_user_by_id(user_id)
    
    if user is None:
        raise AuthorizationFailure("User not found", code="UNKNOWN_USER")
    
    return to_user_response(user)

def to_user_response(user) -> UserResponse:
    return UserResponse(
        id=str(user._id),
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        language=user.language,
        created_at=user.created_at,
        updated_at=user.updated_at
    )
