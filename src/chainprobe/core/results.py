"""Run-scoped result records produced by the workflow executor."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from chainprobe.core.workflow import Assertion, Workflow, WorkflowStep


# -----------------------------------------------------------------------------
# Step results
# -----------------------------------------------------------------------------


@dataclass
class AssertionResult:
    """Outcome of a single assertion check."""
    assertion: Assertion
    passed: bool
    actual_value: Any = None
    message: Optional[str] = None


@dataclass
class WorkflowStepResult:
    """Record of one attempted step, appended once in index order."""
    step: WorkflowStep
    step_index: int
    success: bool
    response: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    resolved_args: Dict[str, Any] = field(default_factory=dict)
    assertion_results: Optional[List[AssertionResult]] = None
    duration_ms: float = 0.0
    analysis: Optional[str] = None


@dataclass
class DataFlowEdge:
    """Derived record of one step's output feeding a later step's input."""
    from_step: int
    to_step: int
    source_path: str
    target_param: str
    sample_value: Any = None


# -----------------------------------------------------------------------------
# State tracking
# -----------------------------------------------------------------------------


class ToolStateRole(str, Enum):
    """Role of a tool in state management."""
    READER = "reader"
    WRITER = "writer"
    BOTH = "both"
    UNKNOWN = "unknown"


class StateChangeType(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass
class ToolStateInfo:
    tool: str
    role: ToolStateRole = ToolStateRole.UNKNOWN
    state_types: List[str] = field(default_factory=list)
    is_probe: bool = False
    confidence: float = 0.0


@dataclass
class StateSnapshot:
    """Point-in-time capture of external state (-1 means before the run)."""
    timestamp: datetime
    after_step_index: int
    data: Any = None
    hash: str = ""
    probe_tool: Optional[str] = None


@dataclass
class StateChange:
    type: StateChangeType
    path: str
    caused_by_step: int
    before: Any = None
    after: Any = None


@dataclass
class StateDependency:
    producer_step: int
    consumer_step: int
    state_type: str
    description: str = ""
    verified: bool = False


@dataclass
class WorkflowStateTracking:
    """State-tracking bundle folded into the workflow result."""
    snapshots: List[StateSnapshot] = field(default_factory=list)
    changes: List[StateChange] = field(default_factory=list)
    dependencies: List[StateDependency] = field(default_factory=list)
    tool_roles: List[ToolStateInfo] = field(default_factory=list)
    summary: Optional[str] = None


# -----------------------------------------------------------------------------
# Workflow result
# -----------------------------------------------------------------------------


@dataclass
class WorkflowResult:
    """Single coherent outcome of one execute() call.

    Usage:
        result = await executor.execute(workflow)
        if not result.success:
            print(result.failed_step_index, result.failure_reason)
    """
    workflow: Workflow
    steps: List[WorkflowStepResult] = field(default_factory=list)
    success: bool = True
    failure_reason: Optional[str] = None
    failed_step_index: Optional[int] = None
    duration_ms: float = 0.0
    data_flow: List[DataFlowEdge] = field(default_factory=list)
    summary: Optional[str] = None
    state_tracking: Optional[WorkflowStateTracking] = None

    @property
    def steps_failed(self) -> int:
        return sum(1 for r in self.steps if not r.success)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable report."""
        return _to_jsonable(self)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, Workflow):
        return value.to_dict()
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if is_dataclass(value) and not isinstance(value, type):
        return {f: _to_jsonable(getattr(value, f)) for f in value.__dataclass_fields__}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)
