"""WebSocket commands for ASP.NET Identity hash migration."""

from __future__ import annotations

from homeassistant.core import HomeAssistant
from homeassistant.components import websocket_api
from homeassistant.exceptions import Unauthorized
import voluptuous as vol

from .const import ATTR_PASSWORD, ATTR_USER, CREDENTIAL_TYPE_PASSWORD, DOMAIN
from .provider import UserCredentialInput


@websocket_api.require_admin
@websocket_api.websocket_command(
    {
        vol.Required("type"): f"{DOMAIN}/login",
        vol.Required(ATTR_USER): str,
        vol.Required(ATTR_PASSWORD): str,
    }
)
@websocket_api.async_response
async def websocket_login(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict,
) -> None:
    """Check a password, migrating a legacy hash on first success.

    A native credential always takes precedence over a legacy hash.
    """
    data = hass.data[DOMAIN]
    store = data["store"]
    user = msg[ATTR_USER]
    password = msg[ATTR_PASSWORD]

    if store.has_native_credential(user):
        valid = await hass.async_add_executor_job(
            store.verify_native_credential, user, password
        )
        connection.send_result(msg["id"], {"success": valid, "migrated": False})
        return

    migrated = await data["provider"].async_is_valid(
        user, UserCredentialInput(CREDENTIAL_TYPE_PASSWORD, password)
    )
    connection.send_result(msg["id"], {"success": migrated, "migrated": migrated})


@websocket_api.require_admin
@websocket_api.websocket_command(
    {
        vol.Required("type"): f"{DOMAIN}/status",
        vol.Required(ATTR_USER): str,
    }
)
@websocket_api.async_response
async def websocket_status(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict,
) -> None:
    """Return the migration state of a user."""
    state = hass.data[DOMAIN]["coordinator"].state_for(msg[ATTR_USER])
    connection.send_result(msg["id"], {"user": msg[ATTR_USER], "state": state.value})


@websocket_api.websocket_command({vol.Required("type"): f"{DOMAIN}/metadata"})
@websocket_api.async_response
async def websocket_metadata(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict,
) -> None:
    """Return the credential type descriptor of the validator."""
    if connection.user is None:
        raise Unauthorized

    metadata = hass.data[DOMAIN]["provider"].get_credential_type_metadata()
    connection.send_result(msg["id"], metadata.as_dict())


async def async_register(hass: HomeAssistant) -> None:
    """Register WebSocket commands."""
    websocket_api.async_register_command(hass, websocket_login)
    websocket_api.async_register_command(hass, websocket_status)
    websocket_api.async_register_command(hass, websocket_metadata)
