"""Request authentication

- verify_admin_key: X-Admin-Key header for catalog administration
- get_current_user: bearer session required (bookings, profile, favorites)
- get_optional_user: bearer session if present (booking creation shows its
  own login interstitial instead of a bare 401)
"""
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.schemas.account import CurrentUser
from app.services.identity import SupabaseAuthClient, get_identity_provider

api_key_header = APIKeyHeader(name="X-Admin-Key", auto_error=True)
bearer = HTTPBearer(auto_error=False)

LOGIN_PATH = "/auth"


def login_url() -> str:
    return f"{settings.SITE_URL}{LOGIN_PATH}"


async def verify_admin_key(key: str = Security(api_key_header)) -> str:
    if key != settings.ADMIN_SECRET_KEY:
        raise HTTPException(status_code=401, detail="Invalid admin key")
    return key


async def get_optional_user(
    creds: HTTPAuthorizationCredentials | None = Security(bearer),
    identity: SupabaseAuthClient = Depends(get_identity_provider),
) -> CurrentUser | None:
    if creds is None or not creds.credentials:
        return None
    return await identity.get_user(creds.credentials)


async def get_current_user(user: CurrentUser | None = Depends(get_optional_user)) -> CurrentUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Login required", "login_url": login_url()},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_access_token(creds: HTTPAuthorizationCredentials | None = Security(bearer)) -> str:
    if creds is None or not creds.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Login required", "login_url": login_url()},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return creds.credentials
