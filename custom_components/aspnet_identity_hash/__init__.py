"""ASP.NET Identity hash migration integration."""

from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.typing import ConfigType
from homeassistant.helpers.storage import Store

from .audit import ACTION_MIGRATED
from .coordinator import MigrationCoordinator, MigrationSettings, settings_from_options
from .provider import AspNetIdentityHashProvider
from .services import async_log_action, async_register_services, async_update_sensors
from .storage import CredentialStore
from .websocket import async_register as async_register_ws

from .const import (
    DOMAIN,
    ATTR_USER,
    ATTRIBUTES_STORAGE_KEY,
    ATTRIBUTES_STORAGE_VERSION,
    CONF_LOG_MIGRATIONS,
    CREDENTIALS_STORAGE_KEY,
    CREDENTIALS_STORAGE_VERSION,
    DEFAULT_LOG_MIGRATIONS,
    EVENT_PASSWORD_MIGRATED,
)

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[str] = ["sensor"]


def async_get_provider(hass: HomeAssistant) -> AspNetIdentityHashProvider | None:
    """Return the credential validator for use by other integrations."""
    return hass.data.get(DOMAIN, {}).get("provider")


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up storage, services and WebSocket commands."""
    hass.data.setdefault(DOMAIN, {CONF_LOG_MIGRATIONS: DEFAULT_LOG_MIGRATIONS})

    store = CredentialStore(
        Store(hass, ATTRIBUTES_STORAGE_VERSION, ATTRIBUTES_STORAGE_KEY, private=True),
        Store(hass, CREDENTIALS_STORAGE_VERSION, CREDENTIALS_STORAGE_KEY, private=True),
        run_blocking=hass.async_add_executor_job,
    )
    await store.async_load()
    hass.data[DOMAIN]["store"] = store

    async def _on_migrated(user: str) -> None:
        hass.bus.async_fire(EVENT_PASSWORD_MIGRATED, {ATTR_USER: user})
        await async_log_action(hass, None, ACTION_MIGRATED, user)
        await async_update_sensors(hass)

    coordinator = MigrationCoordinator(
        store,
        run_blocking=hass.async_add_executor_job,
        logger=_LOGGER,
        on_migrated=_on_migrated,
    )
    hass.data[DOMAIN]["coordinator"] = coordinator
    hass.data[DOMAIN]["provider"] = AspNetIdentityHashProvider(coordinator)

    async_register_services(hass, store, coordinator)
    await async_register_ws(hass)

    return True


def _apply_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    settings = settings_from_options(entry.options)
    hass.data[DOMAIN]["coordinator"].settings = settings
    hass.data[DOMAIN]["store"].iterations = settings.native_iterations
    hass.data[DOMAIN][CONF_LOG_MIGRATIONS] = entry.options.get(
        CONF_LOG_MIGRATIONS, DEFAULT_LOG_MIGRATIONS
    )


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    _apply_options(hass, entry)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up a config entry."""
    _apply_options(hass, entry)
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        defaults = MigrationSettings()
        hass.data[DOMAIN]["coordinator"].settings = defaults
        hass.data[DOMAIN]["store"].iterations = defaults.native_iterations
        hass.data[DOMAIN][CONF_LOG_MIGRATIONS] = DEFAULT_LOG_MIGRATIONS
        hass.data[DOMAIN].pop("sensors", None)
    return unloaded
