from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from time import time
from typing import Protocol

from usage_monitor.core.config.settings import get_settings
from usage_monitor.modules.auth.repository import UserRepositoryConflictError

logger = logging.getLogger(__name__)

SESSION_COOKIE = "usage_monitor_session"
MIN_PASSWORD_LENGTH = 8
_DEFAULT_SESSION_TTL_SECONDS = 12 * 60 * 60
_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1


class UserLike(Protocol):
    id: str
    email: str
    password_hash: str


class UsersRepositoryPort(Protocol):
    async def get_by_id(self, user_id: str) -> UserLike | None: ...

    async def get_by_email(self, email: str) -> UserLike | None: ...

    async def add(self, email: str, password_hash: str) -> UserLike: ...

    async def set_password_hash(self, user_id: str, password_hash: str) -> bool: ...


class AuthValidationError(ValueError):
    pass


class EmailAlreadyRegisteredError(ValueError):
    pass


class InvalidCredentialsError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class CurrentUser:
    id: str
    email: str


@dataclass(slots=True)
class SessionState:
    user_id: str
    expires_at: int


class SessionStore:
    def __init__(self, ttl_seconds: int = _DEFAULT_SESSION_TTL_SECONDS) -> None:
        self._ttl_seconds = ttl_seconds
        self._sessions: dict[str, SessionState] = {}

    def create(self, user_id: str) -> str:
        now = int(time())
        self._prune_expired(now)
        session_id = secrets.token_urlsafe(32)
        self._sessions[session_id] = SessionState(user_id=user_id, expires_at=now + self._ttl_seconds)
        return session_id

    def get(self, session_id: str | None) -> SessionState | None:
        if not session_id:
            return None
        state = self._sessions.get(session_id)
        if state is None:
            return None
        if state.expires_at < int(time()):
            self._sessions.pop(session_id, None)
            return None
        return state

    def user_id(self, session_id: str | None) -> str | None:
        state = self.get(session_id)
        return state.user_id if state else None

    def delete(self, session_id: str | None) -> None:
        if not session_id:
            return
        self._sessions.pop(session_id, None)

    def delete_for_user(self, user_id: str, *, keep: str | None = None) -> None:
        for session_id, state in list(self._sessions.items()):
            if state.user_id == user_id and session_id != keep:
                self._sessions.pop(session_id, None)

    def _prune_expired(self, now: int) -> None:
        for session_id, state in list(self._sessions.items()):
            if state.expires_at < now:
                del self._sessions[session_id]


class AuthService:
    def __init__(self, repository: UsersRepositoryPort, session_store: SessionStore) -> None:
        self._repository = repository
        self._session_store = session_store

    async def get_current_user(self, session_id: str | None) -> CurrentUser | None:
        user_id = self._session_store.user_id(session_id)
        if user_id is None:
            return None
        user = await self._repository.get_by_id(user_id)
        if user is None:
            self._session_store.delete(session_id)
            return None
        return CurrentUser(id=user.id, email=user.email)

    async def sign_up(self, email: str, password: str) -> tuple[CurrentUser, str]:
        normalized = normalize_email(email)
        validate_password(password)
        if await self._repository.get_by_email(normalized) is not None:
            raise EmailAlreadyRegisteredError("Email already registered")
        try:
            user = await self._repository.add(normalized, hash_password(password))
        except UserRepositoryConflictError as exc:
            raise EmailAlreadyRegisteredError("Email already registered") from exc
        logger.info("User signed up user_id=%s", user.id)
        return CurrentUser(id=user.id, email=user.email), self._session_store.create(user.id)

    async def log_in(self, email: str, password: str) -> tuple[CurrentUser, str]:
        user = await self._repository.get_by_email(normalize_email(email))
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid email or password")
        return CurrentUser(id=user.id, email=user.email), self._session_store.create(user.id)

    async def change_password(self, session_id: str | None, current_password: str, new_password: str) -> None:
        user_id = self._session_store.user_id(session_id)
        user = await self._repository.get_by_id(user_id) if user_id else None
        if user is None:
            raise InvalidCredentialsError("Sign in required")
        if not verify_password(current_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")
        validate_password(new_password)
        await self._repository.set_password_hash(user.id, hash_password(new_password))
        self._session_store.delete_for_user(user.id, keep=session_id)

    def log_out(self, session_id: str | None) -> None:
        self._session_store.delete(session_id)


def normalize_email(value: str) -> str:
    email = value.strip().lower()
    local, sep, domain = email.partition("@")
    if not sep or not local or "." not in domain:
        raise AuthValidationError("Invalid email address")
    return email


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(16)
    digest = hashlib.scrypt(password.encode("utf-8"), salt=salt, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P)
    return f"scrypt${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    scheme, sep, rest = encoded.partition("$")
    salt_hex, sep2, digest_hex = rest.partition("$")
    if scheme != "scrypt" or not sep or not sep2:
        return False
    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
    except ValueError:
        return False
    digest = hashlib.scrypt(password.encode("utf-8"), salt=salt, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P)
    return hmac.compare_digest(digest, expected)


_session_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(get_settings().session_ttl_seconds)
    return _session_store
