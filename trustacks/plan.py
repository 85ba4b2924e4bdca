"""Action plans, the action registry and the stage scheduler."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .config import Config
from .stages import ACTION_STAGES, Artifact, Stage, stage_key

logger = logging.getLogger(__name__)

DEFAULT_STAGES: tuple[str, ...] = ("feedback", "package", "prerelease")

_KEYED_STAGES = tuple(Stage(index) for index in range(len(ACTION_STAGES)))


class SchedulingError(Exception):
    """The actions of a plan cannot be put in a valid order."""


class MissingInputsError(Exception):
    """Inputs required by the plan have no value."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"missing inputs: {', '.join(self.missing)}")


@dataclass(frozen=True)
class ActionSpec:
    """Descriptive metadata for an action."""

    name: str
    display_name: str = ""
    description: str = ""


@dataclass(eq=False)
class Action:
    """A unit of work run in a container during one stage."""

    name: str
    stage: Stage
    image: Callable[[Config], str] | None = None
    script: Callable[..., Any] | None = None
    input_artifacts: tuple[Artifact, ...] = ()
    optional_input_artifacts: tuple[Artifact, ...] = ()
    output_artifacts: tuple[Artifact, ...] = ()
    caches: tuple[str, ...] = ()
    secrets: tuple[str, ...] = ()


def _string_list(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"action plan field '{key}' must be a list of strings")
    return list(value)


@dataclass
class ActionPlan:
    """The names of the actions to run and the inputs they need."""

    actions: list[str] = field(default_factory=list)
    inputs: list[str] = field(default_factory=list)

    def add_action(self, name: str, inputs: Iterable[str] | None = None) -> None:
        self.actions.append(name)
        self.inputs.extend(inputs or ())

    def to_json(self) -> str:
        data: dict[str, list[str]] = {"actions": list(self.actions)}
        if self.inputs:
            data["inputs"] = list(self.inputs)
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str | bytes) -> ActionPlan:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("action plan must be a JSON object")
        return cls(
            actions=_string_list(data, "actions"),
            inputs=_string_list(data, "inputs"),
        )


class ActionRegistry:
    """Actions known to the scheduler, by name."""

    def __init__(self, actions: Iterable[Action] = ()) -> None:
        self._actions: dict[str, Action] = {}
        for action in actions:
            self.register(action)

    def register(self, action: Action) -> None:
        self._actions[action.name] = action

    def get(self, name: str) -> Action | None:
        return self._actions.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._actions

    def __iter__(self) -> Iterator[Action]:
        return iter(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)


Assignments = dict[Stage, list[Action]]


def _add(actions: list[Action], action: Action) -> None:
    if action not in actions:
        actions.append(action)


def _discard(actions: list[Action], action: Action) -> None:
    if action in actions:
        actions.remove(action)


class Scheduler:
    """Places actions in stages and orders them by artifact dependencies."""

    def __init__(self, registry: ActionRegistry | None = None) -> None:
        self.registry = registry if registry is not None else ActionRegistry()
        self.required_inputs: dict[Artifact, set[Stage]] = {}
        self.optional_inputs: dict[Artifact, set[Stage]] = {}

    def assign_activity_stage(self, actions: Iterable[str]) -> Assignments:
        """Group the named registered actions by their own stage."""
        assignments: Assignments = {}
        for name in actions:
            action = self.registry.get(name)
            if action is not None:
                _add(assignments.setdefault(action.stage, []), action)
        return assignments

    def bind_action_inputs(self, assignments: Assignments) -> None:
        """Record in which stages each artifact is consumed."""
        for stage, actions in assignments.items():
            for action in actions:
                for artifact in action.input_artifacts:
                    self.required_inputs.setdefault(artifact, set()).add(stage)
                for artifact in action.optional_input_artifacts:
                    self.optional_inputs.setdefault(artifact, set()).add(stage)

    def assign_on_demand_actions(self, assignments: Assignments) -> None:
        """Move on-demand actions to the earliest stage consuming their outputs."""
        watch: set[Action] = set()
        while assignments.get(Stage.ON_DEMAND):
            on_demand = assignments[Stage.ON_DEMAND]
            for action in list(on_demand):
                matched = False
                for artifact in action.output_artifacts:
                    stages = self.required_inputs.get(artifact)
                    if not stages:
                        continue
                    matched = True
                    first = min(stages)
                    if first == Stage.ON_DEMAND:
                        # Only another on-demand action needs this output; give
                        # it one more round to be transferred before giving up.
                        if action in watch:
                            raise SchedulingError(
                                f"outputs for on-demand action '{action.name}' "
                                "cannot be resolved"
                            )
                        watch.add(action)
                        continue
                    _add(assignments.setdefault(first, []), action)
                    _discard(on_demand, action)
                    for artifact_in in action.input_artifacts:
                        targets = self.required_inputs.setdefault(artifact_in, set())
                        targets.discard(Stage.ON_DEMAND)
                        targets.add(first)
                if not matched:
                    logger.info(
                        "one or more outputs from on-demand action '%s' could not "
                        "be matched to an action in a fixed activity state. this "
                        "action will be excluded from the action plan",
                        action.name,
                    )
                    _discard(on_demand, action)

    def sort_actions(self, assignments: Assignments) -> dict[Stage, list[Action]]:
        """Order each stage's actions so that inputs are produced before use."""
        ordered: dict[Stage, list[Action]] = {}
        produced: set[Artifact] = set()
        for stage in _KEYED_STAGES:
            if stage not in assignments:
                continue
            pending = list(assignments[stage])
            unresolved: dict[str, None] = {}
            while pending:
                before = len(pending)
                for action in list(pending):
                    if all(a in produced for a in action.input_artifacts):
                        ordered.setdefault(stage, []).append(action)
                        produced.update(action.output_artifacts)
                        pending.remove(action)
                    else:
                        unresolved[action.name] = None
                if pending and len(pending) == before:
                    raise SchedulingError(
                        "the scheduler has detected unresolved inputs for the "
                        f"following actions: '{','.join(unresolved)}'"
                    )
        return ordered

    def schedule(self, actions: Iterable[str]) -> dict[Stage, list[Action]]:
        assignments = self.assign_activity_stage(actions)
        self.bind_action_inputs(assignments)
        self.assign_on_demand_actions(assignments)
        return self.sort_actions(assignments)


def plan_run_order(
    spec: str,
    stages: Sequence[str] = DEFAULT_STAGES,
    registry: ActionRegistry | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[list[Action], dict[str, str]]:
    """Resolve a plan into the actions to run, in order, and their input values."""
    plan = ActionPlan.from_json(spec)
    environ = os.environ if environ is None else environ
    values: dict[str, str] = {}
    missing: list[str] = []
    for name in plan.inputs:
        value = environ.get(name, "")
        if value:
            values[name] = value
        else:
            missing.append(name)
    if missing:
        raise MissingInputsError(missing)

    schedule = Scheduler(registry).schedule(plan.actions)
    requested = ["null", *stages]
    order: list[Action] = []
    for stage in _KEYED_STAGES:
        key = stage_key(stage)
        for name in requested:
            if name == key:
                order.extend(schedule.get(stage, ()))
    for action in order:
        logger.info("> %s", action.name)
    return order, values