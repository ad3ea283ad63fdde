"""Progress events emitted while a workflow runs.

Progress is a side channel: subscribers observe phase transitions in
emission order (starting, one executing per attempted step, analyzing,
summarizing, complete) without affecting the run's result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from chainprobe.core.workflow import Workflow, WorkflowStep

logger = logging.getLogger(__name__)


class ProgressPhase(str, Enum):
    STARTING = "starting"
    EXECUTING = "executing"
    ANALYZING = "analyzing"
    SUMMARIZING = "summarizing"
    COMPLETE = "complete"


@dataclass(frozen=True)
class WorkflowProgress:
    """Snapshot of a run's progress at a phase transition."""
    phase: ProgressPhase
    workflow: Workflow
    current_step: int
    total_steps: int
    steps_completed: int
    steps_failed: int
    elapsed_ms: float
    current_step_info: Optional[WorkflowStep] = None


ProgressCallback = Callable[[WorkflowProgress], None]


class ProgressChannel:
    """Fan-out of progress events to subscribed callbacks.

    A failing subscriber is logged and skipped; it never interrupts the run.
    """

    def __init__(self, subscribers: Optional[List[ProgressCallback]] = None):
        self._subscribers: List[ProgressCallback] = list(subscribers or [])

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    @property
    def has_subscribers(self) -> bool:
        return bool(self._subscribers)

    def emit(self, progress: WorkflowProgress) -> None:
        for callback in list(self._subscribers):
            try:
                callback(progress)
            except Exception as exc:
                logger.warning("Progress callback failed during %s: %s", progress.phase.value, exc)
