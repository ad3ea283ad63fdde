"""chainprobe - multi-step tool-call workflow execution for MCP servers."""

from typing import TYPE_CHECKING

__all__ = [
    "Settings",
    "Workflow",
    "WorkflowStep",
    "Assertion",
    "WorkflowResult",
    "WorkflowExecutor",
    "ExecutorOptions",
    "load_workflows",
]

if TYPE_CHECKING:
    from .config.settings import Settings
    from .core.results import WorkflowResult
    from .core.workflow import Assertion, Workflow, WorkflowStep
    from .definitions.loader import load_workflows
    from .execution.executor import ExecutorOptions, WorkflowExecutor


def __getattr__(name: str):
    if name == "Settings":
        from .config.settings import Settings

        return Settings
    if name in ("Workflow", "WorkflowStep", "Assertion"):
        from .core import workflow

        return getattr(workflow, name)
    if name == "WorkflowResult":
        from .core.results import WorkflowResult

        return WorkflowResult
    if name in ("WorkflowExecutor", "ExecutorOptions"):
        from .execution import executor

        return getattr(executor, name)
    if name == "load_workflows":
        from .definitions.loader import load_workflows

        return load_workflows
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
