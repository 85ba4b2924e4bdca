"""Fact gathering and admission of actions into an action plan."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from ..plan import ActionPlan, ActionSpec
from .collector import Collector, SourceCollector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fact:
    """Something established about an application source."""

    name: str


Rule = Callable[[str, Collector, set[Fact]], "Fact | None"]


@dataclass(frozen=True)
class AdmissionResolver:
    """Admits an action when all criteria hold and no exclusion does."""

    spec: ActionSpec
    criteria: tuple[Fact, ...] = ()
    exclude_if: tuple[Fact, ...] = ()
    inputs: tuple[str, ...] = ()


@dataclass(eq=False)
class _RulesetNode:
    rule: Rule
    children: list[_RulesetNode] = field(default_factory=list)


class Ruleset:
    """A forest of rules; a child rule runs only when its parent found a fact."""

    def __init__(self) -> None:
        self._root: list[_RulesetNode] = []
        self._index: dict[Rule, _RulesetNode] = {}

    @property
    def roots(self) -> list[Rule]:
        return [node.rule for node in self._root]

    def children(self, rule: Rule) -> list[Rule]:
        node = self._index.get(rule)
        return [] if node is None else [child.rule for child in node.children]

    def add(self, parent: Rule, child: Rule | None = None) -> None:
        """Add ``parent`` as a root if it is new, and ``child`` beneath it."""
        parent_node = self._index.get(parent)
        if parent_node is None:
            parent_node = _RulesetNode(parent)
            self._index[parent] = parent_node
            self._root.append(parent_node)
        if child is None:
            return
        child_node = self._index.get(child)
        if child_node is None:
            child_node = _RulesetNode(child)
            self._index[child] = child_node
        else:
            for node in self._root:
                if node.rule is child:
                    self._root.remove(node)
                    break
        parent_node.children.append(child_node)

    def gather_facts(
        self,
        source: str,
        collector: Collector,
        facts: set[Fact] | None = None,
    ) -> set[Fact]:
        """Run the rules, adding each fact found to ``facts``, and return it."""
        facts = set() if facts is None else facts
        self._gather(source, collector, facts, self._root)
        return facts

    def _gather(
        self,
        source: str,
        collector: Collector,
        facts: set[Fact],
        nodes: Iterable[_RulesetNode],
    ) -> None:
        for node in nodes:
            fact = node.rule(source, collector, facts)
            if fact is not None:
                facts.add(fact)
                self._gather(source, collector, facts, node.children)


class Engine:
    """Builds an action plan from what the rules find in a source tree."""

    def __init__(
        self,
        collector: SourceCollector | None = None,
        ruleset: Ruleset | None = None,
        resolvers: Iterable[AdmissionResolver] = (),
    ) -> None:
        self.collector = collector if collector is not None else SourceCollector()
        self.ruleset = ruleset if ruleset is not None else Ruleset()
        self.resolvers = list(resolvers)

    def create_action_plan(self, source: str | os.PathLike[str]) -> ActionPlan:
        source = os.fspath(source)
        self.collector.run(source)
        facts: set[Fact] = set()
        try:
            self.ruleset.gather_facts(source, self.collector, facts)
        except Exception as exc:  # a failing rule ends gathering; facts so far stand
            logger.debug("fact gathering stopped: %s", exc)
        plan = ActionPlan()
        for resolver in self.resolvers:
            admitted = all(fact in facts for fact in resolver.criteria) and not any(
                fact in facts for fact in resolver.exclude_if
            )
            if admitted:
                plan.add_action(resolver.spec.name, resolver.inputs)
        return plan


def get_action_spec(
    resolvers: Iterable[AdmissionResolver], name: str
) -> ActionSpec | None:
    """Return the spec of the first resolver for action ``name``."""
    for resolver in resolvers:
        if resolver.spec.name == name:
            return resolver.spec
    return None