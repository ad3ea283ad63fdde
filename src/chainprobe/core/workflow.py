"""Workflow definition models.

A workflow is an ordered chain of tool calls that represents a realistic
usage scenario against a tool server:
- WorkflowStep: one tool invocation with static and mapped arguments
- Assertion: a declarative check against a step's parsed response
- Workflow: the immutable, named sequence of steps

Definitions are frozen once built. The loader is the only component that
constructs them from documents; tests and callers may build them directly.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------


class AssertionCondition(str, Enum):
    """Conditions an assertion can check."""
    EXISTS = "exists"
    TRUTHY = "truthy"
    EQUALS = "equals"
    CONTAINS = "contains"
    TYPE = "type"


VALID_CONDITIONS = [c.value for c in AssertionCondition]

DEFAULT_EXPECTED_OUTCOME = "Workflow completes successfully"


# -----------------------------------------------------------------------------
# Definitions
# -----------------------------------------------------------------------------


class Assertion(BaseModel):
    """A check evaluated against a step's parsed response.

    Examples:
        Assertion(path="items", condition=AssertionCondition.EXISTS)
        Assertion(path="status", condition="equals", value="active")
    """
    path: str
    condition: AssertionCondition
    value: Any = None
    message: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")


class WorkflowStep(BaseModel):
    """One tool invocation within a workflow.

    `arg_mapping` maps a parameter name to an expression such as
    ``$steps[0].result.items[0].id``; resolved values overwrite the
    same-named keys of `args`.
    """
    tool: str
    description: str = ""
    args: Dict[str, Any] = Field(default_factory=dict)
    arg_mapping: Optional[Dict[str, str]] = Field(default=None, alias="argMapping")
    assertions: Optional[List[Assertion]] = None
    optional: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @field_validator("tool")
    @classmethod
    def validate_tool_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("tool cannot be empty")
        return v

    @model_validator(mode="before")
    @classmethod
    def default_description(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("description") and data.get("tool"):
            data = {**data, "description": f"Call {data['tool']}"}
        return data


class Workflow(BaseModel):
    """A named, ordered sequence of tool-call steps."""
    id: str
    name: str
    description: str = ""
    expected_outcome: str = Field(default=DEFAULT_EXPECTED_OUTCOME, alias="expectedOutcome")
    steps: List[WorkflowStep]
    discovered: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @field_validator("steps")
    @classmethod
    def validate_steps_not_empty(cls, v: List[WorkflowStep]) -> List[WorkflowStep]:
        if not v:
            raise ValueError("workflow must have at least one step")
        return v

    @model_validator(mode="before")
    @classmethod
    def default_description(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("description") and data.get("name"):
            data = {**data, "description": f"Workflow: {data['name']}"}
        return data

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the document field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
