"""State tracking adapter.

Forwards run lifecycle hooks to an externally supplied StateTracker and
folds its output into a WorkflowStateTracking bundle:

- before_run: probe tool selection, then optional initial snapshot
  (after_step_index = -1)
- after_step: optional per-step snapshot, diffed against the previous one
- after_run: optional final snapshot; without per-step snapshots the
  initial and final snapshots are diffed instead
- finish: tool roles, inferred (and, with snapshots, verified)
  dependencies, and a natural-language summary

Tracker failures are logged and skipped so they never change the run's
outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import anyio

from chainprobe.core.interfaces import StateTracker
from chainprobe.core.results import (
    StateChange,
    StateSnapshot,
    WorkflowStateTracking,
    WorkflowStepResult,
)

logger = logging.getLogger(__name__)


@dataclass
class StateTrackingOptions:
    """Which snapshots to request during a run."""
    enabled: bool = False
    probe_tools: List[str] = field(default_factory=list)
    snapshot_before: bool = True
    snapshot_after: bool = True
    snapshot_after_each_step: bool = False


class StateTrackingSession:
    """Per-run state tracking; create one for each execute() call."""

    def __init__(
        self,
        tracker: StateTracker,
        options: StateTrackingOptions,
        snapshot_timeout_ms: float = 30000,
    ):
        self.tracker = tracker
        self.options = options
        self.snapshot_timeout_ms = snapshot_timeout_ms
        self.snapshots: List[StateSnapshot] = []
        self.changes: List[StateChange] = []

    async def _snapshot(self, after_step_index: int) -> Optional[StateSnapshot]:
        try:
            with anyio.fail_after(self.snapshot_timeout_ms / 1000):
                return await self.tracker.take_snapshot(after_step_index)
        except TimeoutError:
            logger.warning(
                "State snapshot after step %d timed out after %dms",
                after_step_index,
                self.snapshot_timeout_ms,
            )
        except Exception as exc:
            logger.warning("State snapshot after step %d failed: %s", after_step_index, exc)
        return None

    def _compare(self, before: StateSnapshot, after: StateSnapshot, step_index: int) -> None:
        try:
            self.changes.extend(self.tracker.compare_snapshots(before, after, step_index))
        except Exception as exc:
            logger.warning("State comparison for step %d failed: %s", step_index, exc)

    async def before_run(self) -> None:
        if self.options.probe_tools:
            try:
                self.tracker.set_probe_tools(list(self.options.probe_tools))
            except Exception as exc:
                logger.warning("Configuring probe tools failed: %s", exc)
        if not self.options.snapshot_before:
            return
        logger.debug("Taking initial state snapshot")
        snapshot = await self._snapshot(-1)
        if snapshot is not None:
            self.snapshots.append(snapshot)

    async def after_step(self, step_index: int) -> None:
        if not self.options.snapshot_after_each_step:
            return
        snapshot = await self._snapshot(step_index)
        if snapshot is None:
            return
        if self.snapshots:
            self._compare(self.snapshots[-1], snapshot, step_index)
        self.snapshots.append(snapshot)

    async def after_run(self, last_step_index: int) -> None:
        if not self.options.snapshot_after:
            return
        logger.debug("Taking final state snapshot")
        snapshot = await self._snapshot(last_step_index)
        if snapshot is None:
            return
        if not self.options.snapshot_after_each_step and self.snapshots:
            self._compare(self.snapshots[0], snapshot, last_step_index)
        self.snapshots.append(snapshot)

    async def finish(self, step_results: Sequence[WorkflowStepResult]) -> WorkflowStateTracking:
        """Assemble the state-tracking bundle for the result."""
        tracking = WorkflowStateTracking(snapshots=self.snapshots, changes=self.changes)

        try:
            tracking.tool_roles = list(self.tracker.get_all_tool_info())
        except Exception as exc:
            logger.warning("Tool role classification failed: %s", exc)

        try:
            tracking.dependencies = list(self.tracker.infer_dependencies(step_results))
            if self.snapshots and self.changes:
                tracking.dependencies = list(
                    self.tracker.verify_dependencies(tracking.dependencies, self.snapshots, self.changes)
                )
        except Exception as exc:
            logger.warning("State dependency inference failed: %s", exc)

        try:
            tracking.summary = await self.tracker.generate_summary(tracking)
        except Exception as exc:
            logger.warning("State summary generation failed: %s", exc)
            tracking.summary = (
                f"Captured {len(self.snapshots)} state snapshots and "
                f"detected {len(self.changes)} state changes."
            )

        logger.debug(
            "State tracking complete",
            extra={
                "snapshot_count": len(self.snapshots),
                "change_count": len(self.changes),
                "dependency_count": len(tracking.dependencies),
            },
        )
        return tracking
