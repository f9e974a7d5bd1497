from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

import voluptuous as vol

from .const import (
    CONF_ALLOW_FIXED_FORMAT,
    CONF_LOG_MIGRATIONS,
    CONF_MAX_ITERATIONS,
    CONF_NATIVE_ITERATIONS,
    DEFAULT_ALLOW_FIXED_FORMAT,
    DEFAULT_LOG_MIGRATIONS,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_NATIVE_ITERATIONS,
    MAX_ITERATIONS_LIMIT,
)

MIN_NATIVE_ITERATIONS = 10_000


class Step(str, Enum):
    """Flow step names used by config and options flows."""

    USER = "user"
    INIT = "init"


def default_options() -> dict[str, Any]:
    return {
        CONF_NATIVE_ITERATIONS: DEFAULT_NATIVE_ITERATIONS,
        CONF_MAX_ITERATIONS: DEFAULT_MAX_ITERATIONS,
        CONF_ALLOW_FIXED_FORMAT: DEFAULT_ALLOW_FIXED_FORMAT,
        CONF_LOG_MIGRATIONS: DEFAULT_LOG_MIGRATIONS,
    }


def build_options_schema(current: Mapping[str, Any] | None = None) -> vol.Schema:
    """Return the options schema pre-filled with ``current`` values."""
    values = default_options()
    values.update(current or {})
    return vol.Schema(
        {
            vol.Required(
                CONF_NATIVE_ITERATIONS, default=values[CONF_NATIVE_ITERATIONS]
            ): vol.All(vol.Coerce(int), vol.Range(min=MIN_NATIVE_ITERATIONS)),
            vol.Required(
                CONF_MAX_ITERATIONS, default=values[CONF_MAX_ITERATIONS]
            ): vol.All(vol.Coerce(int), vol.Range(min=1, max=MAX_ITERATIONS_LIMIT)),
            vol.Required(
                CONF_ALLOW_FIXED_FORMAT, default=values[CONF_ALLOW_FIXED_FORMAT]
            ): bool,
            vol.Required(
                CONF_LOG_MIGRATIONS, default=values[CONF_LOG_MIGRATIONS]
            ): bool,
        }
    )
