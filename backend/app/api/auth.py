"""
Auth API — thin layer over the identity provider
POST /api/v1/auth/signup            — create account (+ profile row)
POST /api/v1/auth/login             — email + password → session
POST /api/v1/auth/logout            — revoke the bearer session
POST /api/v1/auth/password/reset    — send reset email
POST /api/v1/auth/password/update   — set new password (bearer session from the reset link)
GET  /api/v1/auth/oauth/{provider}  — provider sign-in URL
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.core.errors import StoreError
from app.core.security import get_access_token
from app.schemas.account import Credentials, PasswordResetBody, PasswordUpdateBody, Session, SignUpBody
from app.services.booking_workflow import email_error
from app.services.catalog_store import SqlAccountStore, get_account_store
from app.services.identity import SupabaseAuthClient, get_identity_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignUpBody,
    identity: SupabaseAuthClient = Depends(get_identity_provider),
    accounts: SqlAccountStore = Depends(get_account_store),
):
    _check_email(body.email)
    result = await identity.sign_up(body.email, body.password, body.full_name)
    session = result if isinstance(result, Session) else None
    user = session.user if session else result

    try:
        await accounts.upsert_profile(user.id, full_name=body.full_name, email=body.email)
    except StoreError as e:
        # the account exists either way; the profile can be completed later
        logger.error(f"Profile for new user {user.id} not created: {e}")

    return {
        "message": "Account created! Welcome to Surgery Hub.",
        "user": user,
        "session": session,
    }


@router.post("/login", response_model=Session)
async def login(body: Credentials, identity: SupabaseAuthClient = Depends(get_identity_provider)):
    _check_email(body.email)
    return await identity.sign_in(body.email, body.password)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: str = Depends(get_access_token),
    identity: SupabaseAuthClient = Depends(get_identity_provider),
):
    await identity.sign_out(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/password/reset")
async def request_password_reset(
    body: PasswordResetBody,
    identity: SupabaseAuthClient = Depends(get_identity_provider),
):
    _check_email(body.email)
    await identity.request_password_reset(body.email)
    return {"message": f"We've sent a password reset link to {body.email}"}


@router.post("/password/update")
async def update_password(
    body: PasswordUpdateBody,
    token: str = Depends(get_access_token),
    identity: SupabaseAuthClient = Depends(get_identity_provider),
):
    await identity.update_password(token, body.password)
    return {"message": "Your password has been successfully changed."}


@router.get("/oauth/{provider}")
async def oauth_url(
    provider: str,
    redirect_to: Optional[str] = Query(default=None),
    identity: SupabaseAuthClient = Depends(get_identity_provider),
):
    return {"url": identity.oauth_url(provider, redirect_to)}


# ── Helpers ──────────────────────────────────────────────────────
def _check_email(value: str) -> None:
    err = email_error(value.strip())
    if err:
        raise HTTPException(status_code=422, detail={"message": err, "fields": {"email": err}})
