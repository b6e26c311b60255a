"""Layered configuration resolution: defaults < file < environment < CLI."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import HashpressConfig

ENV_PREFIX = "HASHPRESS__"


def overrides_from_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``HASHPRESS__SECTION__KEY`` variables into a nested mapping.

    Values are parsed as YAML so lists and numbers survive the round trip
    (``HASHPRESS__BUILD__LANGUAGES="[en-US, ja-JP]"``); unparseable values
    are kept as plain strings.
    """
    overrides: dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        path = [part.lower() for part in name[len(ENV_PREFIX) :].split("__") if part]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        _set_path(overrides, path, value, layer="environment")
    return overrides


def expand_dotted(overrides: Mapping[str, Any], *, layer: str) -> dict[str, Any]:
    """Expand dotted keys (``build.languages``) into nested mappings.

    Raises:
        ConfigError: If ``overrides`` is not a mapping with string keys, or
            two keys disagree about whether a segment is a section.
    """
    if not isinstance(overrides, Mapping):
        raise ConfigError(f"{layer.capitalize()} overrides must be a mapping.")
    expanded: dict[str, Any] = {}
    for key, value in overrides.items():
        if not isinstance(key, str):
            raise ConfigError(f"{layer.capitalize()} override keys must be strings.")
        if isinstance(value, Mapping):
            value = expand_dotted(value, layer=layer)
        _set_path(expanded, key.split("."), value, layer=layer)
    return expanded


def resolve_with_precedence(
    *,
    defaults: HashpressConfig,
    file_overrides: Optional[Mapping[str, Any]] = None,
    env_overrides: Optional[Mapping[str, Any]] = None,
    cli_overrides: Optional[Mapping[str, Any]] = None,
) -> HashpressConfig:
    """Apply each override layer on top of ``defaults`` and validate the result.

    Raises:
        ConfigError: If a layer is malformed or the merged values are invalid.
    """
    merged: dict[str, Any] = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for layer, overrides in layers:
        if overrides is not None:
            merged = _merge(merged, expand_dotted(overrides, layer=layer))

    try:
        return HashpressConfig.model_validate(merged)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise ConfigError(f"Invalid configuration values: {problems}") from exc


def _set_path(target: dict[str, Any], path: list[str], value: Any, *, layer: str) -> None:
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            joined = ".".join(path)
            raise ConfigError(f"{layer.capitalize()} override {joined} conflicts with {segment}.")
        node = child
    leaf = path[-1]
    if isinstance(value, dict) and isinstance(node.get(leaf), dict):
        node[leaf] = _merge(node[leaf], value)
    else:
        node[leaf] = value


def _merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            merged[key] = _merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["ENV_PREFIX", "expand_dotted", "overrides_from_env", "resolve_with_precedence"]
