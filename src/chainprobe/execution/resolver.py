"""Argument resolution against earlier step results.

Argument mappings reference earlier steps with expressions like
``$steps[0].result.items[0].id``:

- ``result`` navigates the JSON-decoded text of the step's first text
  content block (the raw string when it is not JSON)
- ``response`` navigates the raw tool-call result

Navigating through an absent or null intermediate yields MISSING rather
than an error; only malformed expressions, invalid step references and
unusable roots raise ResolutionError.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from chainprobe.core.exceptions import ResolutionError
from chainprobe.core.results import WorkflowStepResult
from chainprobe.core.workflow import WorkflowStep
from chainprobe.execution.parser import parse_step_reference
from chainprobe.execution.types import MISSING, PathRoot, Segment, StepReference

_PRIMITIVES = (str, int, float, bool, bytes)


# -----------------------------------------------------------------------------
# Response helpers
# -----------------------------------------------------------------------------


def _field(obj: Any, key: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


def response_content(response: Any) -> List[Any]:
    """Content blocks of a tool response (empty when absent)."""
    if response is None:
        return []
    return list(_field(response, "content") or [])


def first_text(response: Any) -> Optional[str]:
    """Text of the first textual content block, if any."""
    for block in response_content(response):
        if _field(block, "type") == "text" and _field(block, "text") is not None:
            return str(_field(block, "text"))
    return None


def is_error_response(response: Any) -> bool:
    return bool(_field(response, "isError", False))


def parse_result(response: Any) -> Any:
    """Decode the first text block of a response as JSON.

    Raises:
        ResolutionError: If the response has no text content.
    """
    text = first_text(response)
    if text is None:
        raise ResolutionError("Response has no text content")
    try:
        return json.loads(text)
    except ValueError:
        return text


# -----------------------------------------------------------------------------
# Navigation
# -----------------------------------------------------------------------------


def _is_array(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, _PRIMITIVES)


def _child(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(name, MISSING)
    if _is_array(value):
        if name.isascii() and name.isdigit() and int(name) < len(value):
            return value[int(name)]
        return MISSING
    if isinstance(value, _PRIMITIVES):
        return MISSING
    return getattr(value, name, MISSING)


def navigate(value: Any, segments: Iterable[Segment]) -> Any:
    """Walk `segments` from `value`.

    Returns MISSING as soon as an intermediate value is absent or null, or
    when an index is applied to something that is not an array.
    """
    current = value
    for segment in segments:
        if current is MISSING or current is None:
            return MISSING
        current = _child(current, segment.name)
        if segment.index is not None:
            if not _is_array(current) or segment.index >= len(current):
                return MISSING
            current = current[segment.index]
    return current


# -----------------------------------------------------------------------------
# Resolver
# -----------------------------------------------------------------------------


class ArgumentResolver:
    """Resolves step references against the results recorded so far.

    Usage:
        resolver = ArgumentResolver(step_results)
        args = resolver.resolve_arguments(step, step_index)
    """

    def __init__(self, step_results: Sequence[WorkflowStepResult]):
        self.step_results = step_results

    def _result_for(self, step_index: int) -> Optional[WorkflowStepResult]:
        for result in self.step_results:
            if result.step_index == step_index:
                return result
        return None

    def resolve(self, expression: Union[str, StepReference], current_index: int) -> Any:
        """Resolve one expression from the perspective of step `current_index`.

        Returns:
            The resolved value, or MISSING if the path leads nowhere.

        Raises:
            PathSyntaxError: If the expression is malformed.
            ResolutionError: If the reference is not to an earlier successful
                step, or the root cannot be produced.
        """
        ref = parse_step_reference(expression) if isinstance(expression, str) else expression

        if ref.step_index >= current_index:
            raise ResolutionError(
                f"Cannot reference step {ref.step_index} from step {current_index} "
                "(can only reference earlier steps)",
                context={"expression": str(ref)},
            )

        result = self._result_for(ref.step_index)
        if result is None:
            raise ResolutionError(f"Step {ref.step_index} has not been executed yet")
        if not result.success or result.response is None:
            raise ResolutionError(f"Step {ref.step_index} failed or has no response")

        if ref.root == PathRoot.RESULT:
            try:
                target = parse_result(result.response)
            except ResolutionError:
                raise ResolutionError(f"Step {ref.step_index} response has no text content") from None
        else:
            target = result.response

        return navigate(target, ref.segments)

    def resolve_arguments(self, step: WorkflowStep, current_index: int) -> Dict[str, Any]:
        """Merge a step's static args with its resolved mappings.

        Mapped values overwrite same-named static keys; a mapping that
        resolves to MISSING leaves the static value in place.
        """
        args: Dict[str, Any] = dict(step.args)
        for param, expression in (step.arg_mapping or {}).items():
            value = self.resolve(expression, current_index)
            if value is not MISSING:
                args[param] = value
        return args

    def failed_dependencies(self, step: WorkflowStep, current_index: int) -> List[int]:
        """Earlier steps referenced by `step` whose results failed.

        Unparseable expressions are ignored here; resolution reports them.
        """
        failed: List[int] = []
        for expression in (step.arg_mapping or {}).values():
            try:
                ref = parse_step_reference(expression)
            except ResolutionError:
                continue
            if ref.step_index >= current_index:
                continue
            result = self._result_for(ref.step_index)
            if result is not None and not result.success and ref.step_index not in failed:
                failed.append(ref.step_index)
        return sorted(failed)
