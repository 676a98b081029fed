"""API Dependencies - Authentication and site access"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from uuid import UUID

from domain.auth import User, UserInDB
from domain.enums import SiteRole
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

DEMO_SITE_ID = UUID("5f0c2a54-3b8e-4c1d-9a77-0d6c1e2f4b10")

# Mock user store; site access is kept per user as site_id -> role
_fake_users_db = {
    "admin": {
        "username": "admin",
        "full_name": "Admin User",
        "email": "admin@example.com",
        "plain_password": "admin123",  # Will be hashed on first access
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174000",
        "site_roles": {DEMO_SITE_ID: SiteRole.OWNER},
    },
    "viewer": {
        "username": "viewer",
        "full_name": "Front Desk",
        "email": "desk@example.com",
        "plain_password": "viewer123",
        "disabled": False,
        "user_id": "6a1f7c3e-2d4b-4e8a-8f10-3c5b7d9e1a22",
        "site_roles": {DEMO_SITE_ID: SiteRole.VIEWER},
    },
}

fake_users_db = _fake_users_db

# Cache for hashed passwords
_password_hash_cache = {}


def _get_hashed_password(username: str) -> str:
    """Lazily hash passwords on first access"""
    if username not in _password_hash_cache:
        user = _fake_users_db.get(username)
        if user and "plain_password" in user:
            _password_hash_cache[username] = get_password_hash(user["plain_password"])
    return _password_hash_cache.get(username, "")


def get_user(db, username: str):
    if username in db:
        user_dict = db[username].copy()
        if "plain_password" in user_dict:
            user_dict["hashed_password"] = _get_hashed_password(username)
            del user_dict["plain_password"]
        return UserInDB(**user_dict)
    return None


async def get_current_user(token: str = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    username = decode_access_token(token)
    if username is None:
        raise credentials_exception
    token_data = TokenData(username=username)

    user = get_user(_fake_users_db, username=token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def require_site_role(user: User, site_id: UUID, role: SiteRole, action: str) -> None:
    """Raise 403 unless the user holds at least `role` on the site"""
    if not user.has_site_role(site_id, role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You do not have permission to {action} for this site"
        )
