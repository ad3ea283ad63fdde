"""Workflow execution engine."""

from chainprobe.execution.assertions import AssertionEvaluator
from chainprobe.execution.executor import ExecutorOptions, TimeoutConfig, WorkflowExecutor
from chainprobe.execution.progress import ProgressPhase, WorkflowProgress
from chainprobe.execution.resolver import ArgumentResolver
from chainprobe.execution.state import StateTrackingOptions
from chainprobe.execution.types import MISSING

__all__ = [
    "WorkflowExecutor",
    "ExecutorOptions",
    "TimeoutConfig",
    "StateTrackingOptions",
    "ProgressPhase",
    "WorkflowProgress",
    "ArgumentResolver",
    "AssertionEvaluator",
    "MISSING",
]
