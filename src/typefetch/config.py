"""Client configuration building and precedence resolution.

This module turns loosely shaped configuration input into a validated,
frozen :class:`~typefetch.models.ClientConfig`:

* **Partial overrides** -- :func:`build_client_config` deep-merges nested
  mappings onto a base configuration, so ``{"retry": {"count": 5}}``
  changes only ``retry.count``.
* **Precedence resolution** -- :func:`resolve_client_config` layers
  explicit overrides (e.g. CLI flags) over ``TYPEFETCH_*`` environment
  variables over model defaults.
* **Header parsing** -- :func:`parse_header` reads ``"Name: value"``
  strings given on the command line.

Invalid values raise :class:`~typefetch.exceptions.ConfigError`.
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from typefetch.exceptions import ConfigError
from typefetch.models import ClientConfig

ConfigInput = Union[ClientConfig, Mapping[str, Any], None]

# Environment variable -> (section, field) in ClientConfig
ENV_VARS: dict[str, tuple[Optional[str], str]] = {
    "TYPEFETCH_DEBUG": (None, "debug"),
    "TYPEFETCH_DELETE_HANDLING": (None, "delete_handling"),
    "TYPEFETCH_RETRY_COUNT": ("retry", "count"),
    "TYPEFETCH_RETRY_DELAY_MS": ("retry", "delay_ms"),
    "TYPEFETCH_CACHE_ENABLED": ("cache", "enabled"),
    "TYPEFETCH_CACHE_MAX_AGE_MS": ("cache", "max_age_ms"),
    "TYPEFETCH_CACHE_MAX_ENTRIES": ("cache", "max_entries"),
}


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* onto *base*, returning a new dict.

    Nested mappings are merged key by key; a model instance on the base
    side is dumped to a dict first.  Any other override value replaces the
    base value.  ``None`` override values are skipped at every depth so
    that "not given" never blanks a configured field.
    """
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, BaseModel):
            current = current.model_dump()
        if isinstance(value, Mapping):
            merged[key] = deep_merge(current if isinstance(current, Mapping) else {}, value)
        else:
            merged[key] = value
    return merged


def build_client_config(
    config: ConfigInput = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ClientConfig:
    """Build a :class:`ClientConfig` from a base and optional overrides.

    Args:
        config: An existing :class:`ClientConfig`, a (possibly partial)
            nested mapping, or ``None`` for all defaults.
        overrides: Nested mapping merged on top of *config*.

    Returns:
        A validated, frozen :class:`ClientConfig`.

    Raises:
        ConfigError: A value fails validation.
    """
    if isinstance(config, ClientConfig) and not overrides:
        return config

    if isinstance(config, ClientConfig):
        base: dict[str, Any] = config.model_dump()
    elif config is None:
        base = {}
    elif isinstance(config, Mapping):
        base = dict(config)
    else:
        raise ConfigError(f"Unsupported configuration type: {type(config).__name__}")

    data = deep_merge(base, overrides or {})
    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc


def load_env_config(environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    """Collect configuration from ``TYPEFETCH_*`` environment variables.

    Values are left as strings; Pydantic coerces them during validation
    (``"1"``/``"true"`` for booleans, digits for integers).

    Args:
        environ: Environment mapping; defaults to :data:`os.environ`.

    Returns:
        A nested mapping containing only the variables that are set.
    """
    env = os.environ if environ is None else environ
    result: dict[str, Any] = {}
    for var, (section, name) in ENV_VARS.items():
        value = env.get(var)
        if value is None or value == "":
            continue
        if section is None:
            result[name] = value
        else:
            result.setdefault(section, {})[name] = value
    return result


def resolve_client_config(
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """Resolve the effective client configuration.

    Precedence (high to low):
        1. *overrides* (e.g. CLI flags)
        2. Environment variables (see :data:`ENV_VARS`)
        3. Defaults

    Raises:
        ConfigError: A value from any layer fails validation.
    """
    return build_client_config(load_env_config(environ), overrides)


def parse_header(raw: str) -> tuple[str, str]:
    """Parse a ``"Name: value"`` header string.

    Raises:
        ConfigError: The string has no ``:`` separator or an empty name.
    """
    name, sep, value = raw.partition(":")
    name = name.strip()
    if not sep or not name:
        raise ConfigError(f"Invalid header {raw!r}; expected 'Name: value'")
    return name, value.strip()
