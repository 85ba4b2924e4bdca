"""Rules about container builds, deployment manifests and scanner configs."""

from __future__ import annotations

import os
import re

import yaml

from ..engine.collector import Collector
from ..engine.engine import Fact

ARGOCD_APPLICATION_EXISTS = Fact("argocd_application_exists")
CONTAINERFILE_EXISTS = Fact("containerfile_exists")
CONTAINERFILE_HAS_NO_DEPENDENCIES = Fact("containerfile_has_no_dependencies")
TRIVY_CONFIG_EXISTS = Fact("trivy_config_exists")
SONAR_PROJECT_PROPERTIES_EXISTS = Fact("sonar_project_properties_exists")

CONTAINERFILE_NAMES: tuple[str, ...] = ("Dockerfile", "Containerfile")

_HELM_TEMPLATE = re.compile(r": {{ \.Values.*")
_COPY_SOURCE = re.compile(r"COPY\s(.*?)\s")


def _join(source: str, name: str) -> str:
    """Join ``name`` beneath ``source`` even when ``name`` is absolute."""
    return os.path.normpath(f"{source}{os.sep}{name}")


def _present(path: str) -> bool:
    """True unless ``path`` is known not to exist."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    except OSError:
        return True
    return True


def _exists_strict(path: str) -> bool:
    """True if ``path`` exists; errors other than absence propagate."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


def _first_document(contents: bytes) -> dict:
    document = next(iter(yaml.safe_load_all(contents)), None)
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise yaml.YAMLError("document is not a mapping")
    return document


def argocd_application_exists(
    source: str, collector: Collector, facts: set[Fact] | None
) -> Fact | None:
    """Find an Argo CD ``Application`` manifest among the collected YAML files."""
    fact = None
    for path in collector.search(".*.yaml"):
        with open(path, "rb") as handle:
            contents = handle.read()
        try:
            document = _first_document(contents)
        except yaml.YAMLError:
            # Helm templates are not valid YAML until rendered.
            if not _HELM_TEMPLATE.search(contents.decode("utf-8", "replace")):
                raise
            document = {}
        if (
            document.get("apiVersion") == "argoproj.io/v1alpha1"
            and document.get("kind") == "Application"
        ):
            fact = ARGOCD_APPLICATION_EXISTS
    return fact


def containerfile_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check for a Dockerfile or Containerfile at the source root."""
    fact = None
    for name in CONTAINERFILE_NAMES:
        if _present(_join(source, name)):
            fact = CONTAINERFILE_EXISTS
    return fact


def containerfile_has_no_dependencies(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check that every path copied by the container file exists in the source."""
    for name in CONTAINERFILE_NAMES:
        path = _join(source, name)
        if not _present(path):
            continue
        with open(path, encoding="utf-8", errors="replace") as handle:
            contents = handle.read()
        for copied in _COPY_SOURCE.findall(contents):
            if copied == "." or "--from=" in copied:
                continue
            if not _present(_join(source, copied)):
                return None
    return CONTAINERFILE_HAS_NO_DEPENDENCIES


def trivy_config_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check for ``trivy.yaml`` at the source root."""
    if _exists_strict(_join(source, "trivy.yaml")):
        return TRIVY_CONFIG_EXISTS
    return None


def sonar_project_properties_exists(
    source: str, collector: Collector | None, facts: set[Fact] | None
) -> Fact | None:
    """Check for ``sonar-project.properties`` at the source root."""
    if _exists_strict(_join(source, "sonar-project.properties")):
        return SONAR_PROJECT_PROPERTIES_EXISTS
    return None