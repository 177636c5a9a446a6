"""Identity provider — Supabase Auth (GoTrue) REST client

Sign-in/up/out, password reset + update, OAuth URL, and resolving a bearer
token to the current user. Failures surface as AuthError subclasses so the
API can tell "invalid credentials" apart from everything else.
"""
import logging
from urllib.parse import urlencode

import httpx

from app.core.config import settings
from app.core.errors import AccountExistsError, AuthError, InvalidCredentialsError
from app.schemas.account import CurrentUser, Session

logger = logging.getLogger(__name__)

OAUTH_PROVIDERS = {"google"}


def _error_message(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text or f"HTTP {r.status_code}"
    if not isinstance(body, dict):
        return str(body)
    return body.get("msg") or body.get("error_description") or body.get("message") or body.get("error") or str(body)


def _raise_for_auth(r: httpx.Response) -> None:
    if r.is_success:
        return
    message = _error_message(r)
    if "Invalid login credentials" in message:
        raise InvalidCredentialsError()
    if "already registered" in message:
        raise AccountExistsError()
    raise AuthError(message)


def _user(data: dict) -> CurrentUser:
    return CurrentUser(id=str(data["id"]), email=data.get("email"))


class SupabaseAuthClient:
    def __init__(
        self,
        base_url: str | None = None,
        anon_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.anon_key = settings.SUPABASE_ANON_KEY if anon_key is None else anon_key
        self._transport = transport

    def _client(self, token: str | None = None) -> httpx.AsyncClient:
        headers = {"apikey": self.anon_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/auth/v1",
            headers=headers,
            timeout=10,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, token: str | None = None, **kwargs) -> httpx.Response:
        try:
            async with self._client(token) as client:
                return await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Auth request {method} {path} failed: {e}")
            raise AuthError("Authentication service unavailable. Please try again.") from e

    async def sign_in(self, email: str, password: str) -> Session:
        r = await self._request(
            "POST", "/token", params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        _raise_for_auth(r)
        return self._session(r.json())

    async def sign_up(self, email: str, password: str, full_name: str) -> Session | CurrentUser:
        """Session when the project auto-confirms emails, else just the new user"""
        r = await self._request(
            "POST", "/signup",
            params={"redirect_to": settings.SITE_URL},
            json={"email": email, "password": password, "data": {"full_name": full_name}},
        )
        _raise_for_auth(r)
        data = r.json()
        if data.get("access_token"):
            return self._session(data)
        return _user(data.get("user") or data)

    async def sign_out(self, token: str) -> None:
        r = await self._request("POST", "/logout", token=token)
        # an already-expired token is as signed out as it gets
        if r.status_code not in (401, 403, 404):
            _raise_for_auth(r)

    async def request_password_reset(self, email: str) -> None:
        r = await self._request(
            "POST", "/recover",
            params={"redirect_to": f"{settings.SITE_URL}/auth?mode=reset"},
            json={"email": email},
        )
        _raise_for_auth(r)

    async def update_password(self, token: str, password: str) -> CurrentUser:
        r = await self._request("PUT", "/user", token=token, json={"password": password})
        _raise_for_auth(r)
        return _user(r.json())

    async def get_user(self, token: str) -> CurrentUser | None:
        """None for a missing/expired/revoked token"""
        r = await self._request("GET", "/user", token=token)
        if r.status_code in (401, 403):
            return None
        _raise_for_auth(r)
        return _user(r.json())

    def oauth_url(self, provider: str, redirect_to: str | None = None) -> str:
        if provider not in OAUTH_PROVIDERS:
            raise AuthError(f"Unsupported sign-in provider: {provider}")
        query = urlencode({"provider": provider, "redirect_to": redirect_to or f"{settings.SITE_URL}/"})
        return f"{self.base_url}/auth/v1/authorize?{query}"

    @staticmethod
    def _session(data: dict) -> Session:
        return Session(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
            user=_user(data["user"]),
        )


_provider: SupabaseAuthClient | None = None


def get_identity_provider() -> SupabaseAuthClient:
    global _provider
    if _provider is None:
        _provider = SupabaseAuthClient()
    return _provider
