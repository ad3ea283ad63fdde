"""Interfaces (Protocols) for the executor's collaborators.

The executor never talks to a transport, an LLM provider or a state store
directly. Using Protocols allows for easy faking in tests and swapping
implementations (see chainprobe.transport and chainprobe.analysis for the
bundled adapters).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from chainprobe.analysis.prompts import CompletionOptions
    from chainprobe.core.results import (
        StateChange,
        StateDependency,
        StateSnapshot,
        ToolStateInfo,
        WorkflowStateTracking,
        WorkflowStepResult,
    )


# -----------------------------------------------------------------------------
# Tool calls
# -----------------------------------------------------------------------------


@runtime_checkable
class ToolClient(Protocol):
    """Channel used to invoke tools on the server under test."""

    async def call_tool(self, name: str, args: Dict[str, Any]) -> Mapping[str, Any]:
        """Call a tool.

        Returns a mapping shaped like ``{"content": [...], "isError": bool}``
        where each content block has at least ``type`` and, for text blocks,
        ``text``. May raise.
        """
        ...


# -----------------------------------------------------------------------------
# LLM
# -----------------------------------------------------------------------------


@runtime_checkable
class LLMClient(Protocol):
    """Text completion used for optional step analysis and summaries."""

    async def complete(self, prompt: str, options: Optional["CompletionOptions"] = None) -> str:
        ...


# -----------------------------------------------------------------------------
# State tracking
# -----------------------------------------------------------------------------


@runtime_checkable
class StateTracker(Protocol):
    """Captures and diffs externally observable state around a run."""

    def set_probe_tools(self, tool_names: List[str]) -> None:
        """Restrict snapshots to the named read-only probe tools."""
        ...

    async def take_snapshot(self, after_step_index: int) -> "StateSnapshot":
        """Capture state after the given step (-1 for before the run)."""
        ...

    def compare_snapshots(
        self, before: "StateSnapshot", after: "StateSnapshot", step_index: int
    ) -> List["StateChange"]:
        ...

    def get_all_tool_info(self) -> List["ToolStateInfo"]:
        ...

    def infer_dependencies(
        self, step_results: Sequence["WorkflowStepResult"]
    ) -> List["StateDependency"]:
        ...

    def verify_dependencies(
        self,
        dependencies: List["StateDependency"],
        snapshots: List["StateSnapshot"],
        changes: List["StateChange"],
    ) -> List["StateDependency"]:
        ...

    async def generate_summary(self, tracking: "WorkflowStateTracking") -> str:
        ...
