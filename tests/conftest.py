import importlib
import pathlib
import sys
from datetime import datetime
from types import ModuleType

import pytest

COMPONENT_PATH = (
    pathlib.Path(__file__).resolve().parents[1]
    / "custom_components"
    / "aspnet_identity_hash"
)

# Register the component package without running its __init__, which sets up
# Home Assistant. Submodules resolve their relative imports through __path__.
pkg = ModuleType("custom_components")
pkg.__path__ = [str(COMPONENT_PATH.parent)]
sys.modules.setdefault("custom_components", pkg)
subpkg = ModuleType("custom_components.aspnet_identity_hash")
subpkg.__path__ = [str(COMPONENT_PATH)]
sys.modules["custom_components.aspnet_identity_hash"] = subpkg


def _stub_home_assistant() -> dict[str, ModuleType]:
    """Build the minimal Home Assistant modules the host glue imports."""
    ha = ModuleType("homeassistant")
    ha.__path__ = []
    components = ModuleType("homeassistant.components")
    components.__path__ = []

    sensor_comp = ModuleType("homeassistant.components.sensor")

    class SensorEntity:  # pragma: no cover - simple stub
        hass = None

        @property
        def native_value(self):
            return getattr(self, "_attr_native_value", None)

        def async_write_ha_state(self):
            self.state_writes = getattr(self, "state_writes", 0) + 1

    sensor_comp.SensorEntity = SensorEntity

    websocket_api = ModuleType("homeassistant.components.websocket_api")
    websocket_api.require_admin = lambda func: func
    websocket_api.websocket_command = lambda schema: (lambda func: func)
    websocket_api.async_response = lambda func: func
    websocket_api.ActiveConnection = object
    websocket_api.async_register_command = (
        lambda hass, handler: hass.ws_commands.append(handler)
    )

    config_entries = ModuleType("homeassistant.config_entries")

    class ConfigEntry:  # pragma: no cover - simple stub
        pass

    config_entries.ConfigEntry = ConfigEntry

    core = ModuleType("homeassistant.core")

    class HomeAssistant:  # pragma: no cover - simple stub
        pass

    core.HomeAssistant = HomeAssistant
    core.callback = lambda func: func

    exceptions = ModuleType("homeassistant.exceptions")

    class HomeAssistantError(Exception):  # pragma: no cover - simple stub
        def __init__(self, *args, translation_domain=None, translation_key=None):
            super().__init__(*args)
            self.translation_domain = translation_domain
            self.translation_key = translation_key

    class Unauthorized(HomeAssistantError):  # pragma: no cover - simple stub
        pass

    exceptions.HomeAssistantError = HomeAssistantError
    exceptions.Unauthorized = Unauthorized

    util = ModuleType("homeassistant.util")
    util.__path__ = []
    util_dt = ModuleType("homeassistant.util.dt")
    util_dt.now = datetime.now
    util.dt = util_dt

    return {
        "homeassistant": ha,
        "homeassistant.components": components,
        "homeassistant.components.sensor": sensor_comp,
        "homeassistant.components.websocket_api": websocket_api,
        "homeassistant.config_entries": config_entries,
        "homeassistant.core": core,
        "homeassistant.exceptions": exceptions,
        "homeassistant.util": util,
        "homeassistant.util.dt": util_dt,
    }


@pytest.fixture
def ha_modules(monkeypatch):
    """Install stub Home Assistant modules and return an importer.

    Component modules imported through the returned function are dropped
    again after the test together with the stubs.
    """
    for name, module in _stub_home_assistant().items():
        monkeypatch.setitem(sys.modules, name, module)

    def _import(name):
        full_name = f"custom_components.aspnet_identity_hash.{name}"
        monkeypatch.delitem(sys.modules, full_name, raising=False)
        module = importlib.import_module(full_name)
        monkeypatch.setitem(sys.modules, full_name, module)
        return module

    return _import
