"""Persistent user attributes and native credentials."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from .security import PBKDF2_ITERATIONS, hash_password, verify_password
from .utils import normalize_username

_LOGGER = logging.getLogger(__name__)


class CredentialStoreError(Exception):
    """Raised when a change could not be persisted."""


class CredentialStore:
    """User attribute and native credential storage.

    Both documents are Home Assistant ``Store`` objects (anything with
    ``async_load`` and ``async_save``). Attributes are kept as
    ``{user: {name: value}}`` and credentials as ``{user: hash}``.
    """

    def __init__(
        self,
        attributes_store: Any,
        credentials_store: Any,
        iterations: int = PBKDF2_ITERATIONS,
        run_blocking: Callable[..., Awaitable[Any]] | None = None,
    ) -> None:
        self._attributes_store = attributes_store
        self._credentials_store = credentials_store
        self.iterations = iterations
        self._run_blocking = run_blocking or asyncio.to_thread
        self._attributes: dict[str, dict[str, str]] = {}
        self._credentials: dict[str, str] = {}

    async def async_load(self) -> None:
        self._attributes = await self._attributes_store.async_load() or {}
        self._credentials = await self._credentials_store.async_load() or {}

    def get_attribute(self, user: str, name: str) -> str | None:
        return self._attributes.get(normalize_username(user), {}).get(name)

    def users_with_attribute(self, name: str) -> list[str]:
        return sorted(
            user for user, attributes in self._attributes.items() if attributes.get(name)
        )

    async def async_set_attribute(self, user: str, name: str, value: str) -> None:
        key = normalize_username(user)
        attributes = self._attributes.setdefault(key, {})
        old_value = attributes.get(name)
        attributes[name] = value
        try:
            await self._attributes_store.async_save(self._attributes)
        except Exception as err:  # pylint: disable=broad-except
            _LOGGER.error("Failed to save attribute %s for %s: %s", name, key, err)
            if old_value is None:
                attributes.pop(name, None)
                if not attributes:
                    self._attributes.pop(key, None)
            else:
                attributes[name] = old_value
            raise CredentialStoreError(f"could not save {name} for {key}") from err

    async def async_remove_attribute(self, user: str, name: str) -> None:
        key = normalize_username(user)
        attributes = self._attributes.get(key)
        if not attributes or name not in attributes:
            return
        old_value = attributes.pop(name)
        if not attributes:
            self._attributes.pop(key, None)
        try:
            await self._attributes_store.async_save(self._attributes)
        except Exception as err:  # pylint: disable=broad-except
            _LOGGER.error("Failed to remove attribute %s for %s: %s", name, key, err)
            self._attributes.setdefault(key, {})[name] = old_value
            raise CredentialStoreError(f"could not remove {name} for {key}") from err

    def has_native_credential(self, user: str) -> bool:
        return normalize_username(user) in self._credentials

    def verify_native_credential(self, user: str, password: str) -> bool:
        """Check a password against the native credential. Blocking."""
        stored = self._credentials.get(normalize_username(user))
        if stored is None:
            return False
        return verify_password(password, stored)

    async def async_create_native_credential(self, user: str, password: str) -> None:
        key = normalize_username(user)
        old_value = self._credentials.get(key)
        self._credentials[key] = await self._run_blocking(
            hash_password, password, self.iterations
        )
        try:
            await self._credentials_store.async_save(self._credentials)
        except Exception as err:  # pylint: disable=broad-except
            _LOGGER.error("Failed to save credential for %s: %s", key, err)
            if old_value is None:
                self._credentials.pop(key, None)
            else:
                self._credentials[key] = old_value
            raise CredentialStoreError(f"could not save credential for {key}") from err

