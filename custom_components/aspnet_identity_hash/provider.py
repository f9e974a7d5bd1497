"""Credential validator for ASP.NET Core Identity password hashes.

Users imported from an ASP.NET Identity platform carry a
``legacyPasswordHash`` attribute. On login the validator checks the password
against that hash, creates a native credential on success and removes the
legacy attribute, completing the migration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .const import (
    CREDENTIAL_CATEGORY,
    CREDENTIAL_TYPE_PASSWORD,
    PROVIDER_ID,
)
from .coordinator import MigrationCoordinator

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserCredentialInput:
    """A credential presented by a user during login."""

    type: str
    challenge_response: str | None


@dataclass(frozen=True)
class CredentialTypeMetadata:
    type: str
    category: str
    display_name: str
    help_text: str
    removeable: bool = True

    def as_dict(self) -> dict:
        return {
            "type": self.type,
            "category": self.category,
            "display_name": self.display_name,
            "help_text": self.help_text,
            "removeable": self.removeable,
        }


class AspNetIdentityHashProvider:
    """Validate ``password`` credentials against legacy hashes."""

    provider_id = PROVIDER_ID

    def __init__(self, coordinator: MigrationCoordinator) -> None:
        self._coordinator = coordinator

    def get_type(self) -> str:
        return CREDENTIAL_TYPE_PASSWORD

    def supports_credential_type(self, credential_type: str | None) -> bool:
        return credential_type == CREDENTIAL_TYPE_PASSWORD

    def is_configured_for(self, user: str, credential_type: str) -> bool:
        if not self.supports_credential_type(credential_type):
            return False
        configured = self._coordinator.is_configured(user)
        _LOGGER.debug("Legacy hash configured for %s: %s", user, configured)
        return configured

    async def async_is_valid(self, user: str, credential_input: object) -> bool:
        """Authenticate and, on success, migrate the user's password."""
        if not isinstance(credential_input, UserCredentialInput):
            _LOGGER.debug("Credential input is not a UserCredentialInput")
            return False
        if not self.supports_credential_type(credential_input.type):
            return False
        password = credential_input.challenge_response
        if password is None:
            return False
        return await self._coordinator.async_validate_and_migrate(user, password)

    def create_credential(self, user: str, credential: object) -> None:
        """Native credentials are created by the credential store, not here."""
        return None

    async def async_delete_credential(
        self, user: str, credential_id: str | None = None
    ) -> bool:
        return await self._coordinator.async_delete_legacy_marker(user)

    def get_credential_type_metadata(self) -> CredentialTypeMetadata:
        return CredentialTypeMetadata(
            type=self.get_type(),
            category=CREDENTIAL_CATEGORY,
            display_name=f"{PROVIDER_ID}-display",
            help_text=f"{PROVIDER_ID}-help",
            removeable=True,
        )
