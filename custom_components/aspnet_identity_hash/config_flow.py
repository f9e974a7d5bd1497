"""Config flow for ASP.NET Identity hash migration."""

from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.core import callback

from .const import DOMAIN
from .flow_helpers import Step, build_options_schema, default_options

_LOGGER = logging.getLogger(__name__)

TITLE = "ASP.NET Identity hash migration"


class AspNetIdentityHashConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow."""

    VERSION = 1

    async def async_step_user(self, user_input=None):
        if self._async_current_entries():
            return self.async_abort(reason="single_instance_allowed")
        if user_input is not None:
            _LOGGER.debug("Creating %s entry", DOMAIN)
            return self.async_create_entry(title=TITLE, data={}, options=user_input)
        return self.async_show_form(
            step_id=Step.USER, data_schema=build_options_schema(default_options())
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        return AspNetIdentityHashOptionsFlowHandler(config_entry)


class AspNetIdentityHashOptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options for the existing entry."""

    def __init__(self, config_entry):
        self._entry = config_entry

    async def async_step_init(self, user_input=None):
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)
        schema = build_options_schema(dict(self._entry.options))
        return self.async_show_form(step_id=Step.INIT, data_schema=schema)
