"""Admin services for importing and removing legacy password hashes."""

from __future__ import annotations

import logging

import voluptuous as vol

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError, Unauthorized
from homeassistant.util import dt as dt_util

from .audit import ACTION_DELETE_HASH, ACTION_IMPORT_HASH, write_audit_log
from .const import (
    ATTR_HASH,
    ATTR_USER,
    CONF_LOG_MIGRATIONS,
    DEFAULT_LOG_MIGRATIONS,
    DOMAIN,
    LEGACY_HASH_ATTRIBUTE,
    SERVICE_DELETE_LEGACY_HASH,
    SERVICE_IMPORT_LEGACY_HASH,
)
from .coordinator import MigrationCoordinator
from .hash_format import decode_text
from .storage import CredentialStore, CredentialStoreError
from .utils import get_person_name

_LOGGER = logging.getLogger(__name__)

IMPORT_LEGACY_HASH_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_USER): vol.All(str, vol.Length(min=1)),
        vol.Required(ATTR_HASH): vol.All(str, vol.Length(min=1)),
    }
)
DELETE_LEGACY_HASH_SCHEMA = vol.Schema(
    {vol.Required(ATTR_USER): vol.All(str, vol.Length(min=1))}
)


async def async_update_sensors(hass: HomeAssistant) -> None:
    for sensor in list(hass.data[DOMAIN].get("sensors", [])):
        await sensor.async_update_state()


async def async_log_action(
    hass: HomeAssistant, user_id: str | None, action: str, details: str
) -> None:
    """Write an audit row naming the acting person, if logging is enabled."""
    if not hass.data[DOMAIN].get(CONF_LOG_MIGRATIONS, DEFAULT_LOG_MIGRATIONS):
        return
    hass_user = await hass.auth.async_get_user(user_id) if user_id else None
    name = get_person_name(hass, user_id) or (
        hass_user.name if hass_user else "System"
    )
    await hass.async_add_executor_job(
        write_audit_log, hass.config.path(), dt_util.now(), name, action, details
    )


def async_register_services(
    hass: HomeAssistant, store: CredentialStore, coordinator: MigrationCoordinator
) -> None:
    """Register the admin-only legacy hash services."""

    async def _verify_admin(call) -> None:
        user_id = call.context.user_id
        if user_id is None:
            return
        hass_user = await hass.auth.async_get_user(user_id)
        if hass_user is None or not hass_user.is_admin:
            raise Unauthorized

    async def import_legacy_hash_service(call):
        await _verify_admin(call)
        user = call.data[ATTR_USER]
        settings = coordinator.settings
        result = decode_text(
            call.data[ATTR_HASH],
            allow_fixed=settings.allow_fixed_format,
            max_iterations=settings.max_iterations,
        )
        if not result.ok:
            _LOGGER.warning(
                "Rejected legacy hash import for %s: %s", user, result.error.value
            )
            raise HomeAssistantError(
                translation_domain=DOMAIN, translation_key="invalid_hash"
            )
        try:
            await store.async_set_attribute(
                user, LEGACY_HASH_ATTRIBUTE, call.data[ATTR_HASH].strip()
            )
        except CredentialStoreError as err:
            raise HomeAssistantError(
                translation_domain=DOMAIN, translation_key="save_failed"
            ) from err
        _LOGGER.info("Imported legacy hash for %s (%r)", user, result.record)
        await async_log_action(hass, call.context.user_id, ACTION_IMPORT_HASH, user)
        await async_update_sensors(hass)

    async def delete_legacy_hash_service(call):
        await _verify_admin(call)
        user = call.data[ATTR_USER]
        try:
            removed = await coordinator.async_delete_legacy_marker(user)
        except CredentialStoreError as err:
            raise HomeAssistantError(
                translation_domain=DOMAIN, translation_key="save_failed"
            ) from err
        if not removed:
            return
        await async_log_action(hass, call.context.user_id, ACTION_DELETE_HASH, user)
        await async_update_sensors(hass)

    hass.services.async_register(
        DOMAIN,
        SERVICE_IMPORT_LEGACY_HASH,
        import_legacy_hash_service,
        schema=IMPORT_LEGACY_HASH_SCHEMA,
    )

    hass.services.async_register(
        DOMAIN,
        SERVICE_DELETE_LEGACY_HASH,
        delete_legacy_hash_service,
        schema=DELETE_LEGACY_HASH_SCHEMA,
    )
