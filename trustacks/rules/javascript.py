"""Rules about JavaScript sources described by ``package.json``."""

from __future__ import annotations

import json
import os
import re
from typing import Any

from ..engine.collector import Collector
from ..engine.engine import Fact

PACKAGE_JSON_EXISTS = Fact("package_json_exists")
PACKAGE_JSON_VERSION_EXISTS = Fact("package_json_version_exists")
ESLINT_CONFIG_EXISTS = Fact("eslint_config_exists")
EXPRESS_DEPENDENCY_EXISTS = Fact("express_dependency_exists")
NPM_TEST_EXISTS = Fact("npm_test_exists")
NPM_BUILD_EXISTS = Fact("npm_build_exists")
REACT_SCRIPTS_TEST_EXISTS = Fact("react_scripts_test_exists")
REACT_SCRIPTS_BUILD_EXISTS = Fact("react_scripts_build_exists")
CYPRESS_E2E_SOURCES_EXIST = Fact("cypress_e2e_sources_exist")

ESLINT_CONFIG_NAMES: tuple[str, ...] = (
    ".eslintrc.js",
    ".eslintrc.cjs",
    ".eslintrc.yaml",
    ".eslintrc.yml",
    ".eslintrc.json",
    "package.json",
)

_TEST_EXTENSIONS: tuple[str, ...] = ("js", "jsx", "ts", "tsx")
_REACT_SCRIPTS_TEST = re.compile(r"(^|\s)react-scripts\s+test")
_REACT_SCRIPTS_BUILD = re.compile(r"(^|\s)react-scripts\s+build")


def _package_json_path(source: str) -> str:
    return os.path.join(source, "package.json")


def _read_package_json(source: str) -> dict[str, Any]:
    with open(_package_json_path(source), encoding="utf-8") as handle:
        data = json.load(handle)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("package.json must hold a JSON object")
    return data


def _section(package: dict[str, Any], name: str) -> dict[str, Any]:
    value = package.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"package.json field '{name}' must be an object")
    return value


def _script(package: dict[str, Any], name: str) -> str | None:
    value = _section(package, "scripts").get(name)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"package.json script '{name}' must be a string")
    return value


def package_json_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check for ``package.json`` at the source root."""
    try:
        os.stat(_package_json_path(source))
    except FileNotFoundError:
        return None
    return PACKAGE_JSON_EXISTS


def package_json_version_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check that ``package.json`` has a ``version`` key."""
    if "version" in _read_package_json(source):
        return PACKAGE_JSON_VERSION_EXISTS
    return None


def eslint_config_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check for an ESLint configuration file or ``eslintConfig`` key."""
    config = next(
        (name for name in sorted(os.listdir(source)) if name in ESLINT_CONFIG_NAMES),
        None,
    )
    if config is not None and config != "package.json":
        return ESLINT_CONFIG_EXISTS
    if "eslintConfig" in _read_package_json(source):
        return ESLINT_CONFIG_EXISTS
    return None


def express_dependency_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check that ``express`` is among the package dependencies."""
    if "express" in _section(_read_package_json(source), "dependencies"):
        return EXPRESS_DEPENDENCY_EXISTS
    return None


def npm_test_exists(
    source: str, collector: Collector, facts: set[Fact] | None
) -> Fact | None:
    """Check for test sources and a ``test`` script in ``package.json``."""
    for ext in _TEST_EXTENSIONS:
        if collector.search(f".*.test.{ext}"):
            if _script(_read_package_json(source), "test") is not None:
                return NPM_TEST_EXISTS
            return None
    return None


def npm_build_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check for a ``build`` script in ``package.json``."""
    if _script(_read_package_json(source), "build") is not None:
        return NPM_BUILD_EXISTS
    return None


def react_scripts_test_exists(
    source: str, collector: Collector, facts: set[Fact] | None
) -> Fact | None:
    """Check that the test script runs ``react-scripts test``."""
    if not collector.search(r"\.test.js"):
        return None
    script = _script(_read_package_json(source), "test") or ""
    if script and _REACT_SCRIPTS_TEST.search(script):
        return REACT_SCRIPTS_TEST_EXISTS
    return None


def react_scripts_build_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check that the build script runs ``react-scripts build``."""
    script = _script(_read_package_json(source), "build") or ""
    if script and _REACT_SCRIPTS_BUILD.search(script):
        return REACT_SCRIPTS_BUILD_EXISTS
    return None