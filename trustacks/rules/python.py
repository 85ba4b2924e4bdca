"""Rules about Python sources, their dependencies and test runners."""

from __future__ import annotations

import os
import re
import tomllib

from ..engine.collector import Collector
from ..engine.engine import Fact

PYPROJECT_TOML_EXISTS = Fact("pyproject_toml_exists")
PIP_REQUIREMENTS_EXISTS = Fact("pip_requirements_exists")
PYTEST_DEPENDENCY_EXISTS = Fact("pytest_dependency_exists")
TOX_INI_EXISTS = Fact("tox_ini_exists")

PYTEST_SOURCES_PATTERN = "test_.*.py"

_PYTEST_IMPORT = re.compile(rb"import pytest")


def _exists_strict(path: str) -> bool:
    """True if ``path`` exists; errors other than absence propagate."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


def _present(path: str) -> bool:
    """True unless ``path`` is known not to exist."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except OSError:
        return True
    return True


def pyproject_toml_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check for ``pyproject.toml`` at the source root."""
    if _exists_strict(os.path.join(source, "pyproject.toml")):
        return PYPROJECT_TOML_EXISTS
    return None


def pip_requirements_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check for ``requirements.txt`` at the source root."""
    if _exists_strict(os.path.join(source, "requirements.txt")):
        return PIP_REQUIREMENTS_EXISTS
    return None


def check_poetry_dependencies(path: str | os.PathLike[str], dependency: str) -> bool:
    """Return whether the poetry lock file at ``path`` pins ``dependency``."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    packages = data.get("package", [])
    if not isinstance(packages, list):
        raise ValueError("poetry lock field 'package' must be an array of tables")
    return any(
        isinstance(package, dict) and package.get("name") == dependency
        for package in packages
    )


def check_pip_requirements(path: str | os.PathLike[str], dependency: str) -> bool:
    """Return whether the requirements file starts by pinning ``dependency``."""
    with open(path, "rb") as handle:
        data = handle.read()
    return re.search(f"^{dependency}==".encode(), data) is not None


def pytest_dependency_exists(
    source: str, collector: Collector, facts: set[Fact] | None
) -> Fact | None:
    """Check that the test sources are meant to run under pytest."""
    tests = collector.search(PYTEST_SOURCES_PATTERN)
    if not tests:
        return None

    has_import = False
    for path in tests:
        with open(path, "rb") as handle:
            if _PYTEST_IMPORT.search(handle.read()):
                has_import = True
                break

    has_config = _present(os.path.join(source, "pytest.ini"))

    has_dependency = False
    poetry_lock = os.path.join(source, "poetry.lock")
    if _present(poetry_lock):
        has_dependency = check_poetry_dependencies(poetry_lock, "pytest")
    requirements = os.path.join(source, "requirements.txt")
    if _present(requirements):
        has_dependency = check_pip_requirements(requirements, "pytest")

    if has_import or has_config or has_dependency:
        return PYTEST_DEPENDENCY_EXISTS
    return None


def tox_ini_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check for ``tox.ini`` at the source root."""
    if _exists_strict(os.path.join(source, "tox.ini")):
        return TOX_INI_EXISTS
    return None