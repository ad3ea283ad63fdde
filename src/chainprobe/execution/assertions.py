"""Declarative assertion checks against a step's parsed response.

Assertion paths are relative to the step's own parsed result (the
JSON-decoded first text block), e.g. ``items[0].name``. Only a fixed set
of conditions is supported:
- exists: value is neither absent nor null
- truthy: JSON truthiness (see chainprobe.execution.values)
- equals: strict value-and-type equality
- contains: substring for strings, membership for arrays
- type: canonical JSON type name
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from chainprobe.core.exceptions import ResolutionError
from chainprobe.core.results import AssertionResult
from chainprobe.core.workflow import Assertion, AssertionCondition
from chainprobe.execution.parser import parse_relative_path
from chainprobe.execution.resolver import navigate, parse_result
from chainprobe.execution.types import MISSING
from chainprobe.execution.values import (
    JsonType,
    is_truthy,
    json_type,
    matches_type,
    strict_equals,
)

NO_RESPONSE_MESSAGE = "No response to assert against"


def _exists(actual: Any, expected: Any) -> bool:
    return actual is not MISSING and actual is not None


def _truthy(actual: Any, expected: Any) -> bool:
    return is_truthy(actual)


def _contains(actual: Any, expected: Any) -> bool:
    kind = json_type(actual)
    if kind == JsonType.STRING:
        return isinstance(expected, str) and expected in actual
    if kind == JsonType.ARRAY:
        return any(strict_equals(item, expected) for item in actual)
    return False


CONDITION_CHECKS: Dict[AssertionCondition, Callable[[Any, Any], bool]] = {
    AssertionCondition.EXISTS: _exists,
    AssertionCondition.TRUTHY: _truthy,
    AssertionCondition.EQUALS: strict_equals,
    AssertionCondition.CONTAINS: _contains,
    AssertionCondition.TYPE: matches_type,
}


class AssertionEvaluator:
    """Evaluate step assertions.

    Usage:
        evaluator = AssertionEvaluator()
        results = evaluator.evaluate_all(step.assertions, response)
        passed = all(r.passed for r in results)
    """

    def check(self, condition: AssertionCondition, actual: Any, expected: Any = None) -> bool:
        """Apply one condition to an already-resolved value."""
        return CONDITION_CHECKS[AssertionCondition(condition)](actual, expected)

    def evaluate(self, assertion: Assertion, response: Optional[Any]) -> AssertionResult:
        """Evaluate a single assertion against a tool response.

        Args:
            assertion: The assertion to check.
            response: The step's raw tool response (may be an error response).

        Returns:
            AssertionResult; never raises for data problems.
        """
        if response is None:
            return AssertionResult(
                assertion=assertion,
                passed=False,
                message=assertion.message or NO_RESPONSE_MESSAGE,
            )

        try:
            segments = parse_relative_path(assertion.path)
            actual = navigate(parse_result(response), segments)
        except ResolutionError as e:
            return AssertionResult(
                assertion=assertion,
                passed=False,
                message=f"Failed to extract path {assertion.path}: {e.message}",
            )

        passed = self.check(assertion.condition, actual, assertion.value)
        return AssertionResult(
            assertion=assertion,
            passed=passed,
            actual_value=None if actual is MISSING else actual,
            message=None if passed else (
                assertion.message or f"Assertion failed: {assertion.condition.value}"
            ),
        )

    def evaluate_all(
        self, assertions: Sequence[Assertion], response: Optional[Any]
    ) -> List[AssertionResult]:
        return [self.evaluate(assertion, response) for assertion in assertions]
