"""Activity stages and the artifacts that actions pass between them."""

from __future__ import annotations

from enum import IntEnum


class Stage(IntEnum):
    """Activity stage an action runs in, in execution order."""

    ON_DEMAND = 0
    FEEDBACK = 1
    PACKAGE = 2
    STAGE = 3
    QA = 4
    RELEASE = 5


class Artifact(IntEnum):
    """Artifact produced by one action and consumed by another."""

    APPLICATION_DIST = 0
    CONTAINER_IMAGE = 1
    SEMANTIC_VERSION = 2


# Keys by which stages are selected on the command line, indexed by stage.
# The on-demand stage has the empty key and is never selected directly.
ACTION_STAGES: tuple[str, ...] = (
    "",
    "feedback",
    "package",
    "prerelease",
    "release",
)


def stage_key(stage: Stage) -> str:
    """Return the selection key of ``stage``."""
    stage = Stage(stage)
    if stage >= len(ACTION_STAGES):
        raise ValueError(f"stage {stage.name} has no selection key")
    return ACTION_STAGES[stage]