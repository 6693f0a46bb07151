"""
Identity collaborator for Lumina.

Defines the contract Lumina expects from an identity/session provider and
two providers:
- LocalIdentityProvider: in-memory accounts for local mode
- SupabaseIdentityProvider: Supabase Auth (GoTrue) over REST

Providers own credentials and sessions only. Profiles (role, streak) live
in the course repository; a profile's role is fixed at sign-up.
"""

import hashlib
import hmac
import inspect
import logging
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol, Union

import httpx

from lumina.config import DEFAULT_HTTP_TIMEOUT
from lumina.errors import AuthenticationError, NotFound, RepositoryUnavailable
from lumina.repository import CourseRepository, RemoteCourseRepository
from lumina.schemas import User, UserRole
from lumina.seed import DEMO_PASSWORD, demo_users
from lumina.utils.ids import new_id

logger = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class AuthSession:
    """An authenticated identity."""
    user_id: str
    email: str
    access_token: Optional[str] = None


@dataclass(frozen=True)
class SignUpResult:
    """
    Outcome of a sign-up.

    profile is None when the provider requires email confirmation before
    the first sign-in.
    """
    profile: Optional[User]
    confirmation_pending: bool = False


SessionCallback = Callable[[SessionEvent, Optional[AuthSession]], Union[None, Awaitable[None]]]


class IdentityProvider(Protocol):
    async def get_current_session(self) -> Optional[AuthSession]: ...

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]: ...

    async def sign_in(self, email: str, password: str) -> User: ...

    async def sign_up(self, email: str, password: str, name: str, role: UserRole) -> SignUpResult: ...

    async def sign_out(self) -> None: ...


class _SessionEvents:
    """Session state and change listeners shared by the providers."""

    def __init__(self):
        self._session: Optional[AuthSession] = None
        self._listeners: list[SessionCallback] = []

    async def get_current_session(self) -> Optional[AuthSession]:
        return self._session

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def _set_session(self, event: SessionEvent, session: Optional[AuthSession]):
        self._session = session
        for listener in list(self._listeners):
            result = listener(event, session)
            if inspect.isawaitable(result):
                await result


# -----------------------------------------------------------------------------
# Local provider
# -----------------------------------------------------------------------------

def _hash_password(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, 100_000)


class LocalIdentityProvider(_SessionEvents):
    """
    In-memory accounts for local mode.

    Credentials are kept for the lifetime of the process; profiles are
    written to the repository so they survive restarts.
    """

    def __init__(self, repository: CourseRepository, demo_accounts: bool = True):
        super().__init__()
        self.repository = repository
        self._accounts: dict[str, tuple[str, bytes, bytes]] = {}
        if demo_accounts:
            for user in demo_users():
                self._add_account(user.email, DEMO_PASSWORD, user.id)

    def _add_account(self, email: str, password: str, user_id: str):
        salt = secrets.token_bytes(16)
        self._accounts[email.lower()] = (user_id, salt, _hash_password(password, salt))

    def _verify(self, email: str, password: str) -> Optional[str]:
        account = self._accounts.get(email.lower())
        if account is None:
            return None
        user_id, salt, digest = account
        if not hmac.compare_digest(digest, _hash_password(password, salt)):
            return None
        return user_id

    async def sign_in(self, email: str, password: str) -> User:
        user_id = self._verify(email, password)
        if user_id is None:
            raise AuthenticationError("Invalid email or password")
        await self._set_session(SessionEvent.SIGNED_IN, AuthSession(user_id=user_id, email=email))
        logger.info("Signed in %s", email)
        return await self.repository.get_profile(user_id)

    async def sign_up(self, email: str, password: str, name: str, role: UserRole) -> SignUpResult:
        if email.lower() in self._accounts:
            raise AuthenticationError(f"An account already exists for {email}")
        if not password:
            raise AuthenticationError("Password must not be empty")
        profile = User(id=new_id("u"), email=email, name=name, role=role)
        await self.repository.save_profile(profile)
        self._add_account(email, password, profile.id)
        await self._set_session(SessionEvent.SIGNED_IN, AuthSession(user_id=profile.id, email=email))
        logger.info("Signed up %s as %s", email, role.value)
        return SignUpResult(profile=profile)

    async def sign_out(self) -> None:
        await self._set_session(SessionEvent.SIGNED_OUT, None)


# -----------------------------------------------------------------------------
# Supabase provider
# -----------------------------------------------------------------------------

class SupabaseIdentityProvider(_SessionEvents):
    """Supabase Auth over its REST endpoints (``{url}/auth/v1``)."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        repository: CourseRepository,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.repository = repository
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post(self, path: str, payload: Optional[dict], token: Optional[str] = None) -> httpx.Response:
        try:
            return await self._client.post(
                f"{self.base_url}/auth/v1/{path}",
                json=payload,
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {token or self.api_key}",
                },
            )
        except httpx.HTTPError as e:
            logger.warning("Auth call %s failed: %s", path, e)
            raise RepositoryUnavailable(f"Auth service unreachable: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        return body.get("error_description") or body.get("msg") or body.get("message") or str(body)

    async def _start_session(self, body: dict) -> AuthSession:
        user = body.get("user") or {}
        if not user.get("id"):
            raise AuthenticationError("Auth service response has no user")
        session = AuthSession(
            user_id=user["id"],
            email=user.get("email", ""),
            access_token=body.get("access_token"),
        )
        if isinstance(self.repository, RemoteCourseRepository):
            self.repository.set_access_token(session.access_token)
        await self._set_session(SessionEvent.SIGNED_IN, session)
        return session

    async def sign_in(self, email: str, password: str) -> User:
        response = await self._post("token?grant_type=password", {"email": email, "password": password})
        if response.status_code >= 500:
            raise RepositoryUnavailable("Auth service error", status_code=response.status_code)
        if response.status_code >= 400:
            raise AuthenticationError(self._error_message(response))
        session = await self._start_session(response.json())
        logger.info("Signed in %s", email)
        return await self.repository.get_profile(session.user_id)

    async def sign_up(self, email: str, password: str, name: str, role: UserRole) -> SignUpResult:
        response = await self._post("signup", {
            "email": email,
            "password": password,
            "data": {"name": name, "role": role.value},
        })
        if response.status_code >= 500:
            raise RepositoryUnavailable("Auth service error", status_code=response.status_code)
        if response.status_code >= 400:
            raise AuthenticationError(self._error_message(response))

        body = response.json()
        if not body.get("access_token"):
            logger.info("Sign-up for %s awaits email confirmation", email)
            return SignUpResult(profile=None, confirmation_pending=True)

        session = await self._start_session(body)
        try:
            profile = await self.repository.get_profile(session.user_id)
        except NotFound:
            profile = await self.repository.save_profile(
                User(id=session.user_id, email=email, name=name, role=role)
            )
        return SignUpResult(profile=profile)

    async def sign_out(self) -> None:
        if self._session is not None:
            response = await self._post("logout", None, token=self._session.access_token)
            if response.status_code >= 400:
                logger.warning("Sign-out returned %d", response.status_code)
        if isinstance(self.repository, RemoteCourseRepository):
            self.repository.set_access_token(None)
        await self._set_session(SessionEvent.SIGNED_OUT, None)
