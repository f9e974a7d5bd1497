"""Sensors for ASP.NET Identity hash migration."""

from __future__ import annotations

from homeassistant.components.sensor import SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import DOMAIN, LEGACY_HASH_ATTRIBUTE


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities
):
    sensor = PendingMigrationsSensor(hass, entry)
    hass.data[DOMAIN].setdefault("sensors", []).append(sensor)
    async_add_entities([sensor])


class PendingMigrationsSensor(SensorEntity):
    """Number of users that still carry a legacy password hash."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        self._hass = hass
        self._entry = entry
        self._attr_should_poll = False
        self._attr_name = "Pending password migrations"
        self._attr_unique_id = f"{entry.entry_id}_pending_migrations"
        self.entity_id = f"sensor.{DOMAIN}_pending_migrations"
        self._attr_native_unit_of_measurement = "users"
        self._attr_icon = "mdi:account-key"
        self._attr_native_value = self._pending_count()

    def _pending_count(self) -> int:
        store = self._hass.data[DOMAIN]["store"]
        return len(store.users_with_attribute(LEGACY_HASH_ATTRIBUTE))

    async def async_will_remove_from_hass(self) -> None:
        sensors = self._hass.data.get(DOMAIN, {}).get("sensors", [])
        if self in sensors:
            sensors.remove(self)

    async def async_update_state(self) -> None:
        self._attr_native_value = self._pending_count()
        if self.hass is not None:
            self.async_write_ha_state()
