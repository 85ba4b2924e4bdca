"""Project configuration read from ``trustacks.toml``."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_PATH = "./trustacks.toml"


@dataclass
class CommonConfig:
    version: str = ""


@dataclass
class PythonConfig:
    version: str = ""
    libraries: list[str] = field(default_factory=list)
    dev_requirements: str = ""


@dataclass
class ArgoCDConfig:
    grpc_web: bool = False
    insecure: bool = False


@dataclass
class Config:
    common: CommonConfig = field(default_factory=CommonConfig)
    python: PythonConfig = field(default_factory=PythonConfig)
    argocd: ArgoCDConfig = field(default_factory=ArgoCDConfig)


def _table(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ValueError(f"configuration section '{name}' must be a table")
    return value


def _value(table: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    if key not in table:
        return default
    value = table[key]
    if not isinstance(value, kind):
        raise ValueError(
            f"configuration key '{key}' must be of type {kind.__name__}"
        )
    return value


def _string_list(table: dict[str, Any], key: str) -> list[str]:
    value = _value(table, key, list, [])
    if not all(isinstance(item, str) for item in value):
        raise ValueError(f"configuration key '{key}' must be a list of strings")
    return list(value)


def load_config(path: str | Path = CONFIG_PATH) -> Config:
    """Read the configuration file; a missing file yields the defaults."""
    path = Path(path)
    if not path.exists():
        return Config()
    with path.open("rb") as handle:
        data = tomllib.load(handle)

    common = _table(data, "common")
    python = _table(data, "python")
    argocd = _table(data, "argocd")
    return Config(
        common=CommonConfig(version=_value(common, "version", str, "")),
        python=PythonConfig(
            version=_value(python, "version", str, ""),
            libraries=_string_list(python, "libs"),
            dev_requirements=_value(python, "dev_reqs", str, ""),
        ),
        argocd=ArgoCDConfig(
            grpc_web=_value(argocd, "grpcWeb", bool, False),
            insecure=_value(argocd, "insecure", bool, False),
        ),
    )