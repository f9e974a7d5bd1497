"""Validate legacy passwords and migrate them to native credentials."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Protocol

from .const import (
    CONF_ALLOW_FIXED_FORMAT,
    CONF_MAX_ITERATIONS,
    CONF_NATIVE_ITERATIONS,
    DEFAULT_ALLOW_FIXED_FORMAT,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_NATIVE_ITERATIONS,
    LEGACY_HASH_ATTRIBUTE,
    MAX_ITERATIONS_LIMIT,
)
from .hash_format import FailureKind, decode_text
from .kdf import derive
from .security import constant_time_equal
from .utils import normalize_username

_LOGGER = logging.getLogger(__name__)


class UserCredentialStore(Protocol):
    """User record operations the coordinator relies on."""

    def get_attribute(self, user: str, name: str) -> str | None:
        ...

    def has_native_credential(self, user: str) -> bool:
        ...

    async def async_remove_attribute(self, user: str, name: str) -> None:
        ...

    async def async_create_native_credential(self, user: str, password: str) -> None:
        ...


class MigrationState(str, Enum):
    NOT_CONFIGURED = "not_configured"
    CONFIGURED = "configured"
    MIGRATED = "migrated"


class MigrationOutcome(str, Enum):
    REJECTED = "rejected"
    MIGRATED = "migrated"


@dataclass(frozen=True)
class MigrationSettings:
    allow_fixed_format: bool = DEFAULT_ALLOW_FIXED_FORMAT
    max_iterations: int | None = DEFAULT_MAX_ITERATIONS
    native_iterations: int = DEFAULT_NATIVE_ITERATIONS


def settings_from_options(options: Mapping[str, Any]) -> MigrationSettings:
    """Build settings from config entry options, falling back to defaults."""
    max_iterations = options.get(CONF_MAX_ITERATIONS, DEFAULT_MAX_ITERATIONS)
    return MigrationSettings(
        allow_fixed_format=bool(
            options.get(CONF_ALLOW_FIXED_FORMAT, DEFAULT_ALLOW_FIXED_FORMAT)
        ),
        max_iterations=(
            min(int(max_iterations), MAX_ITERATIONS_LIMIT)
            if max_iterations
            else MAX_ITERATIONS_LIMIT
        ),
        native_iterations=int(
            options.get(CONF_NATIVE_ITERATIONS, DEFAULT_NATIVE_ITERATIONS)
        ),
    )


def check_legacy_hash(
    password: str, stored: str, settings: MigrationSettings
) -> FailureKind | None:
    """Return ``None`` if ``password`` matches ``stored``, else the failure kind.

    Blocking: runs PBKDF2 with the iteration count taken from the hash,
    which is never allowed above ``MAX_ITERATIONS_LIMIT``.
    """
    bound = min(settings.max_iterations or MAX_ITERATIONS_LIMIT, MAX_ITERATIONS_LIMIT)
    result = decode_text(
        stored,
        allow_fixed=settings.allow_fixed_format,
        max_iterations=bound,
    )
    if result.record is None:
        return result.error.kind
    computed = derive(password, result.record)
    if not constant_time_equal(computed, result.record.subkey):
        return FailureKind.NO_MATCH
    return None


def verify_legacy_hash(
    password: str, stored: str, settings: MigrationSettings | None = None
) -> bool:
    """Return whether ``password`` matches the legacy hash ``stored``."""
    return check_legacy_hash(password, stored, settings or MigrationSettings()) is None


async def _run_in_thread(func: Callable[..., Any], *args: Any) -> Any:
    return await asyncio.to_thread(func, *args)


class MigrationCoordinator:
    """Replace a user's legacy hash with a native credential exactly once.

    Attempts for the same user are serialized, and the stored hash is read
    again before migrating, so concurrent logins with the correct password
    create a single native credential.
    """

    def __init__(
        self,
        store: UserCredentialStore,
        *,
        settings: MigrationSettings | None = None,
        run_blocking: Callable[..., Awaitable[Any]] | None = None,
        logger: logging.Logger | None = None,
        on_migrated: Callable[[str], Awaitable[None]] | None = None,
    ) -> None:
        self._store = store
        self.settings = settings or MigrationSettings()
        self._run_blocking = run_blocking or _run_in_thread
        self._logger = logger or _LOGGER
        self._on_migrated = on_migrated
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _lock(self, user: str) -> AsyncIterator[None]:
        """Hold the per-user lock, dropping it once nobody holds or awaits it."""
        key = normalize_username(user)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    def _stored_hash(self, user: str) -> str | None:
        value = self._store.get_attribute(user, LEGACY_HASH_ATTRIBUTE)
        if not isinstance(value, str) or not value:
            return None
        return value

    def is_configured(self, user: str) -> bool:
        """Return whether the user still carries a legacy hash."""
        return self._stored_hash(user) is not None

    def state_for(self, user: str) -> MigrationState:
        if self.is_configured(user):
            return MigrationState.CONFIGURED
        if self._store.has_native_credential(user):
            return MigrationState.MIGRATED
        return MigrationState.NOT_CONFIGURED

    async def async_attempt(self, user: str, password: str) -> MigrationOutcome:
        """Validate ``password`` against the legacy hash and migrate on success."""
        async with self._lock(user):
            stored = self._stored_hash(user)
            if stored is None:
                self._logger.debug("No legacy hash found for user: %s", user)
                return MigrationOutcome.REJECTED

            try:
                failure = await self._run_blocking(
                    check_legacy_hash, password, stored, self.settings
                )
            except (ValueError, OverflowError) as err:
                self._logger.warning(
                    "Error validating legacy password for user %s: %s", user, err
                )
                return MigrationOutcome.REJECTED
            if failure is not None:
                self._logger.debug(
                    "Legacy password rejected for user %s (%s)", user, failure.value
                )
                return MigrationOutcome.REJECTED

            if self._stored_hash(user) != stored:
                self._logger.debug(
                    "Legacy hash for user %s changed during validation", user
                )
                return MigrationOutcome.REJECTED

            try:
                await self._store.async_create_native_credential(user, password)
            except Exception as err:  # pylint: disable=broad-except
                self._logger.error(
                    "Failed to create native credential for %s: %s", user, err
                )
                return MigrationOutcome.REJECTED

            try:
                await self._store.async_remove_attribute(user, LEGACY_HASH_ATTRIBUTE)
            except Exception as err:  # pylint: disable=broad-except
                self._logger.warning(
                    "Native credential created for %s but the legacy hash "
                    "could not be removed: %s",
                    user,
                    err,
                )

            self._logger.info("Password migration completed for user: %s", user)
            if self._on_migrated is not None:
                try:
                    await self._on_migrated(user)
                except Exception as err:  # pylint: disable=broad-except
                    self._logger.warning(
                        "Post-migration hook failed for %s: %s", user, err
                    )
            return MigrationOutcome.MIGRATED

    async def async_validate_and_migrate(self, user: str, password: str) -> bool:
        outcome = await self.async_attempt(user, password)
        return outcome is MigrationOutcome.MIGRATED

    async def async_delete_legacy_marker(self, user: str) -> bool:
        """Remove the legacy hash without authenticating.

        Returns whether a hash was present.
        """
        async with self._lock(user):
            if self._stored_hash(user) is None:
                return False
            await self._store.async_remove_attribute(user, LEGACY_HASH_ATTRIBUTE)
            return True
