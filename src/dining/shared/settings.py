"""Tunables read from the ``[custom]`` section of ``domain.toml``."""

from protean.utils.globals import current_domain

_DEFAULTS = {
    "RESERVATION_EXTENSION_MINUTES": 30,
    "ORDER_NUMBER_ATTEMPTS": 5,
}


def setting(key: str):
    custom = current_domain.config.get("custom") or {}
    return custom.get(key, _DEFAULTS[key])
