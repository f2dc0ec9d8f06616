"""
Security utilities for authentication

Accounts, passwords and bearer tokens live in the external identity
provider (Supabase Auth). This module forwards sign-up, login and logout
to it and asks it who a token belongs to.
"""

from typing import Any, Optional

import httpx
from pydantic import BaseModel

from app.core.config import settings
from app.core.errors import (
    AuthenticationError,
    ConfigurationError,
    IdentityProviderError,
    ValidationError,
)
from app.core.logging import get_logger

logger = get_logger(__name__)


class AuthenticatedUser(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


class AuthSession(BaseModel):
    user: AuthenticatedUser
    # None when the provider requires email confirmation before issuing tokens
    token: Optional[str] = None


def _user_from_payload(payload: dict) -> Optional[AuthenticatedUser]:
    user_id = payload.get("id")
    if not user_id:
        return None
    metadata = payload.get("user_metadata") or {}
    return AuthenticatedUser(id=user_id, email=payload.get("email"), name=metadata.get("name"))


def _provider_message(response: httpx.Response, default: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        return default
    if not isinstance(payload, dict):
        return default
    return payload.get("msg") or payload.get("error_description") or payload.get("message") or default


class IdentityProviderClient:
    """Thin client for the identity provider's auth endpoints"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.supabase_url or "").rstrip("/")
        self.api_key = api_key or settings.supabase_anon_key
        self.timeout = timeout if timeout is not None else settings.auth_timeout_seconds
        self._transport = transport

    async def _request(
        self, method: str, path: str, token: Optional[str] = None, **kwargs: Any
    ) -> httpx.Response:
        """Send one request; timeouts, transport failures and 5xx become IdentityProviderError"""
        if not self.base_url or not self.api_key:
            raise ConfigurationError("Identity provider is not configured")

        headers = {"apikey": self.api_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method, f"{self.base_url}/auth/v1{path}", headers=headers, **kwargs
                )
        except httpx.TimeoutException as e:
            logger.error(f"Identity provider timed out: {e}")
            raise IdentityProviderError("Identity provider timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Identity provider request failed: {e}")
            raise IdentityProviderError("Identity provider unavailable") from e

        if response.status_code >= 500:
            logger.error(f"Identity provider returned {response.status_code} for {path}")
            raise IdentityProviderError(f"Identity provider returned {response.status_code}")
        return response

    async def verify_token(self, token: str) -> AuthenticatedUser:
        """
        Verify a bearer token with the identity provider.

        Args:
            token: Raw bearer token (without the "Bearer " prefix)

        Returns:
            The user the token belongs to

        Raises:
            AuthenticationError: token rejected by the provider
            IdentityProviderError: provider unreachable or timed out
        """
        if not token:
            raise AuthenticationError("Missing bearer token")

        response = await self._request("GET", "/user", token=token)
        if response.status_code in (401, 403):
            raise AuthenticationError("Invalid or expired token")
        if response.status_code >= 400:
            logger.error(f"Identity provider returned {response.status_code}")
            raise IdentityProviderError(f"Identity provider returned {response.status_code}")

        user = _user_from_payload(response.json())
        if user is None:
            raise AuthenticationError("Invalid or expired token")
        return user

    async def sign_up(self, email: str, password: str, name: Optional[str] = None) -> AuthSession:
        """
        Register a new account.

        Raises:
            ValidationError: the provider refused the registration
            IdentityProviderError: provider unreachable or returned no user
        """
        body: dict[str, Any] = {"email": email, "password": password}
        if name:
            body["data"] = {"name": name}

        response = await self._request("POST", "/signup", json=body)
        if response.status_code >= 400:
            message = _provider_message(response, "Signup failed")
            logger.warning(f"Signup rejected by identity provider: {message}")
            raise ValidationError(message, code="SIGNUP_ERROR")

        payload = response.json()
        user = _user_from_payload(payload.get("user") or payload)
        if user is None:
            raise IdentityProviderError("Identity provider returned no user")
        logger.info(f"Signed up user {user.id}")
        return AuthSession(user=user, token=payload.get("access_token"))

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Exchange email and password for an access token.

        Raises:
            AuthenticationError: credentials rejected
            IdentityProviderError: provider unreachable or returned no session
        """
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.status_code >= 400:
            message = _provider_message(response, "Invalid login credentials")
            raise AuthenticationError(message, code="LOGIN_ERROR")

        payload = response.json()
        user = _user_from_payload(payload.get("user") or {})
        token = payload.get("access_token")
        if user is None or not token:
            raise IdentityProviderError("Identity provider returned no session")
        logger.info(f"User {user.id} logged in")
        return AuthSession(user=user, token=token)

    async def sign_out(self, token: str) -> None:
        """
        Revoke the session behind a bearer token.

        Raises:
            AuthenticationError: token rejected by the provider
            IdentityProviderError: provider unreachable or refused the request
        """
        response = await self._request("POST", "/logout", token=token)
        if response.status_code in (401, 403):
            raise AuthenticationError("Invalid or expired token")
        if response.status_code >= 400:
            logger.error(f"Identity provider returned {response.status_code} on logout")
            raise IdentityProviderError(f"Identity provider returned {response.status_code}")


identity_provider = IdentityProviderClient()
