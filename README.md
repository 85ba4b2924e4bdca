# trustacks

`trustacks` is a library for software delivery plans. It inspects an
application's source tree, records **facts** about it, admits the delivery
actions whose requirements those facts meet into an **action plan**, and
schedules the plan's actions into ordered stages.

## Installation

```
pip install .
```

## Concepts

### Source collection

`trustacks.engine.collector.SourceCollector` walks a source tree and records
every path whose *name* matches one of its `PatternMatch` regular expressions.
A path is skipped when it contains any of the collector's exclusions or the
pattern's own `exclusions`. A pattern of kind `PatternMatchKind.DIRECTORY` only
matches directories. `search(pattern)` returns the sorted paths collected for a
pattern. `GLOBAL_PATTERN_EXCLUSIONS` holds `"node_modules"`. Pass it as
`exclusions` if you want those paths skipped.

### Facts and rules

A rule is a callable `rule(source, collector, facts)`. It returns a `Fact`, or
`None` when it found nothing. `trustacks.engine.engine.Ruleset` arranges rules
in a tree: `add(parent, child)` makes `child` run only when `parent` produced a
fact. `gather_facts(source, collector)` runs the tree and returns the set of
facts found.

The package provides these rules:

- `trustacks.rules.containers`:
  - `containerfile_exists` looks for a `Dockerfile` or `Containerfile`.
  - `containerfile_has_no_dependencies` checks that every `COPY` source the
    container file names exists in the tree.
  - `argocd_application_exists` looks for an Argo CD `Application` manifest
    among the collected `.*.yaml` files. Helm templates that cannot be parsed
    are tolerated.
  - `trivy_config_exists` looks for `trivy.yaml`.
  - `sonar_project_properties_exists` looks for `sonar-project.properties`.
- `trustacks.rules.javascript`:
  - `package_json_exists` and `package_json_version_exists`.
  - `eslint_config_exists` looks for an `.eslintrc.*` file or an
    `eslintConfig` key in `package.json`.
  - `express_dependency_exists`.
  - `npm_test_exists` and `npm_build_exists`. The test rule only fires when
    `.*.test.{js,jsx,ts,tsx}` files were collected.
  - `react_scripts_test_exists` and `react_scripts_build_exists`.
- `trustacks.rules.python`:
  - `pyproject_toml_exists`, `pip_requirements_exists` and `tox_ini_exists`.
  - `pytest_dependency_exists` fires when the collected `test_.*.py` files
    import pytest, when a `pytest.ini` exists, or when `poetry.lock` or
    `requirements.txt` pins pytest.
  - The helpers `check_poetry_dependencies` and `check_pip_requirements`.

Each module exposes its facts as upper-case constants, for example
`CONTAINERFILE_EXISTS` or `PACKAGE_JSON_VERSION_EXISTS`.

### Admission and plans

An `AdmissionResolver` pairs an `ActionSpec` (name, display name, description)
with three lists:

- `criteria`: the facts the action needs.
- `exclude_if`: the facts that rule the action out.
- `inputs`: the user inputs the action requires.

`Engine(collector, ruleset, resolvers).create_action_plan(source)` runs the
collector and the rules. It returns an `ActionPlan` holding every admitted
action and its inputs. If a rule raises, fact gathering stops there, and the
facts found so far are still used. `get_action_spec(resolvers, name)` looks up
an action's spec.

`ActionPlan.to_json()` gives the plan as compact JSON, and
`ActionPlan.from_json()` reads it back:

```json
{"actions":["containerBuild","trivyImage"],"inputs":["CONTAINER_REGISTRY"]}
```

### Stages and scheduling

Every `Action` belongs to a `Stage` (from `trustacks.stages`). Stages are
selected by key:

| stage             | key          |
|-------------------|--------------|
| `Stage.FEEDBACK`  | `feedback`   |
| `Stage.PACKAGE`   | `package`    |
| `Stage.STAGE`     | `prerelease` |
| `Stage.QA`        | `release`    |

`Stage.ON_DEMAND` has the empty key, and `Stage.RELEASE` has no key.
`stage_key()` raises `ValueError` for `Stage.RELEASE`.

`Scheduler(registry).schedule(names)` schedules the named actions in three
steps:

1. It groups the named actions that appear in an `ActionRegistry` by stage.
2. It moves each on-demand action into the earliest stage that needs one of its
   output `Artifact`s. An on-demand action whose outputs nobody needs is
   dropped, with a log message.
3. It orders each stage so that every input artifact is produced before it is
   used.

An output that can never be placed, or an input that can never be satisfied,
raises `SchedulingError`.

`plan_run_order(spec, stages, registry, environ)` reads a plan's JSON. It checks
that every plan input has a non-empty value in `environ`, which defaults to
`os.environ`, and raises `MissingInputsError` if not. It returns the actions of
the selected stages in run order, together with the input values. The default
stages are `feedback`, `package` and `prerelease`.

### Configuration

`trustacks.config.load_config(path)` reads `./trustacks.toml` by default and
returns a `Config`. A missing file gives the defaults. A value of the wrong type
raises `ValueError`.

```toml
[common]
version = "1.2.3"

[python]
version = "3.11"
libs = ["libpq-dev"]
dev_reqs = "requirements-dev.txt"

[argocd]
grpcWeb = true
insecure = false
```

## Example

This example builds a plan for a source tree and then puts its actions in run
order:

```python
from trustacks.engine.collector import GLOBAL_PATTERN_EXCLUSIONS, SourceCollector
from trustacks.engine.engine import AdmissionResolver, Engine, Ruleset
from trustacks.plan import Action, ActionRegistry, ActionSpec, plan_run_order
from trustacks.rules import containers
from trustacks.stages import Artifact, Stage

ruleset = Ruleset()
ruleset.add(containers.containerfile_exists, containers.containerfile_has_no_dependencies)
ruleset.add(containers.containerfile_has_no_dependencies, containers.trivy_config_exists)

resolvers = [
    AdmissionResolver(
        ActionSpec("containerBuild", "Container Build", "Build the container image."),
        criteria=(containers.CONTAINERFILE_HAS_NO_DEPENDENCIES,),
    ),
    AdmissionResolver(
        ActionSpec("trivyImage", "Trivy Scan", "Scan the container image."),
        criteria=(containers.TRIVY_CONFIG_EXISTS,),
    ),
]

engine = Engine(SourceCollector(exclusions=GLOBAL_PATTERN_EXCLUSIONS), ruleset, resolvers)
plan = engine.create_action_plan("./app")

registry = ActionRegistry([
    Action("containerBuild", Stage.ON_DEMAND, output_artifacts=(Artifact.CONTAINER_IMAGE,)),
    Action("trivyImage", Stage.FEEDBACK, input_artifacts=(Artifact.CONTAINER_IMAGE,)),
])
order, values = plan_run_order(plan.to_json(), registry=registry, environ={})
print([action.name for action in order])  # ['containerBuild', 'trivyImage']
```

## What this package does not do

- There is no command-line tool. Everything is used from Python.
- There is no ready-made catalog of actions, resolvers or ruleset. You build
  the `ActionRegistry`, the `AdmissionResolver`s and the `Ruleset` yourself from
  the rules provided.
- There are no rules for Go sources, and no rule produces
  `CYPRESS_E2E_SOURCES_EXIST`.
- Actions are scheduled but not executed. The package runs no containers and
  exports no artifacts. `Action.image` and `Action.script` are only carried
  along for the caller to use.
- There is no hosted plan storage and no login.

## Development

```
pip install -e ".[test]"
pytest
```