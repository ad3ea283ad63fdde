"""Workflow definition loader.

Loads workflows from YAML files. A file may hold a single workflow, a list
of workflows, or several ``---``-separated documents each holding one
workflow. Every structural problem is reported as a DefinitionError before
anything executes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from chainprobe.core.exceptions import DefinitionError
from chainprobe.core.workflow import (
    DEFAULT_EXPECTED_OUTCOME,
    VALID_CONDITIONS,
    Assertion,
    AssertionCondition,
    Workflow,
    WorkflowStep,
)
from chainprobe.execution.parser import EXPECTED_FORMAT, STEPS_KEYWORD

logger = logging.getLogger(__name__)

DEFAULT_WORKFLOWS_FILE = "chainprobe-workflows.yaml"

PathLike = Union[str, Path]


def load_workflows(path: PathLike) -> List[Workflow]:
    """Load and validate all workflows in a YAML file.

    Raises:
        DefinitionError: If the file is missing, unparsable, or any workflow
            in it is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise DefinitionError(f"Workflow file not found: {path}", context={"path": str(path)})

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DefinitionError(f"Could not read workflow file {path}: {e}") from e

    return parse_workflows(content, source=str(path))


def parse_workflows(content: str, source: str = "<string>") -> List[Workflow]:
    """Parse and validate workflows from YAML text."""
    try:
        documents = [doc for doc in yaml.safe_load_all(content) if doc is not None]
    except yaml.YAMLError as e:
        raise DefinitionError(f"YAML parse error in {source}: {e}", context={"source": source}) from e

    raw_workflows: List[Any] = []
    for doc in documents:
        if isinstance(doc, list):
            raw_workflows.extend(doc)
        else:
            raw_workflows.append(doc)

    if not raw_workflows:
        raise DefinitionError(f"No workflows defined in {source}", context={"source": source})

    workflows = [_validate_workflow(raw, source, index) for index, raw in enumerate(raw_workflows)]
    logger.debug("Loaded %d workflows from %s", len(workflows), source)
    return workflows


def try_load_default_workflows(directory: PathLike) -> Optional[List[Workflow]]:
    """Load the default workflows file from a directory.

    Returns None if the file doesn't exist or is invalid.
    """
    path = Path(directory) / DEFAULT_WORKFLOWS_FILE
    if not path.exists():
        return None
    try:
        return load_workflows(path)
    except DefinitionError as e:
        logger.warning("Ignoring invalid workflow file %s: %s", path, e.message)
        return None


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------


def _is_nonempty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _validate_workflow(data: Any, source: str, index: int) -> Workflow:
    label = f"Workflow {index + 1} from {source}"
    if not isinstance(data, Mapping):
        raise DefinitionError(f"{label} must be a mapping")

    if not _is_nonempty_str(data.get("id")):
        raise DefinitionError(f"{label} missing required field: id")
    workflow_id = data["id"]
    if not _is_nonempty_str(data.get("name")):
        raise DefinitionError(f"{label} missing required field: name", context={"workflow_id": workflow_id})

    raw_steps = data.get("steps")
    if not isinstance(raw_steps, list) or not raw_steps:
        raise DefinitionError(
            f"{label} missing required field: steps (must be non-empty array)",
            context={"workflow_id": workflow_id},
        )

    steps = [_validate_step(step, workflow_id, i) for i, step in enumerate(raw_steps)]

    try:
        return Workflow(
            id=workflow_id,
            name=data["name"],
            description=data.get("description") or f"Workflow: {data['name']}",
            expected_outcome=data.get("expectedOutcome") or DEFAULT_EXPECTED_OUTCOME,
            steps=steps,
            discovered=False,
        )
    except ValidationError as e:
        raise DefinitionError(f'Workflow "{workflow_id}" from {source} is invalid: {e}') from e


def _validate_step(data: Any, workflow_id: str, index: int) -> WorkflowStep:
    where = f'step {index + 1} of workflow "{workflow_id}"'
    if not isinstance(data, Mapping):
        raise DefinitionError(f"Step {index + 1} in workflow \"{workflow_id}\" must be a mapping")

    if not _is_nonempty_str(data.get("tool")):
        raise DefinitionError(f'Step {index + 1} in workflow "{workflow_id}" missing required field: tool')

    args = data.get("args") or {}
    if not isinstance(args, Mapping):
        raise DefinitionError(f"Invalid args in {where}: expected a mapping")

    arg_mapping = data.get("argMapping")
    if arg_mapping is not None:
        if not isinstance(arg_mapping, Mapping):
            raise DefinitionError(f"Invalid argMapping in {where}: expected a mapping")
        for param, expression in arg_mapping.items():
            if not isinstance(expression, str) or not expression.startswith(f"{STEPS_KEYWORD}["):
                raise DefinitionError(
                    f'Invalid argMapping for "{param}" in {where}. Expected format: {EXPECTED_FORMAT}',
                    context={"workflow_id": workflow_id, "step": index + 1, "param": param},
                )

    optional = data.get("optional", False)
    if optional is None:
        optional = False
    if not isinstance(optional, bool):
        raise DefinitionError(f"Invalid optional flag in {where}: expected true or false")

    assertions = None
    raw_assertions = data.get("assertions")
    if raw_assertions is not None:
        if not isinstance(raw_assertions, list):
            raise DefinitionError(f"Invalid assertions in {where}: expected a list")
        assertions = [_validate_assertion(a, where, i) for i, a in enumerate(raw_assertions)]

    try:
        return WorkflowStep(
            tool=data["tool"],
            description=data.get("description") or f"Call {data['tool']}",
            args=dict(args),
            arg_mapping=dict(arg_mapping) if arg_mapping is not None else None,
            assertions=assertions,
            optional=optional,
        )
    except ValidationError as e:
        raise DefinitionError(f"Invalid {where}: {e}") from e


def _validate_assertion(data: Any, where: str, index: int) -> Assertion:
    label = f"Assertion {index + 1} in {where}"
    if not isinstance(data, Mapping):
        raise DefinitionError(f"{label} must be a mapping")

    if not _is_nonempty_str(data.get("path")):
        raise DefinitionError(f"{label} missing required field: path")

    condition = data.get("condition")
    if condition not in VALID_CONDITIONS:
        raise DefinitionError(
            f"{label} has invalid condition. Valid conditions: {', '.join(VALID_CONDITIONS)}"
        )

    message = data.get("message")
    return Assertion(
        path=data["path"],
        condition=AssertionCondition(condition),
        value=data.get("value"),
        message=str(message) if message is not None else None,
    )

