"""Workflow step executor.

This module provides the execution engine for tool-call workflows. Steps
run strictly in index order; a step never starts resolving arguments until
every earlier step's result has been recorded.

For each step the executor:
1. Checks the tool is among the server's capabilities
2. Resolves argument mappings against earlier results
3. Calls the tool under a timeout
4. Runs the step's assertions against the (possibly error) response
5. Takes the per-step state snapshot, if configured
6. Optionally asks the LLM for a short analysis (with a fixed fallback)

A failed step stops the run unless it is optional or the run continues on
error. Afterwards the data-flow graph, optional state tracking bundle and
optional summary are assembled into one WorkflowResult. Nothing except the
caller's own cancellation escapes execute().
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

import anyio

from chainprobe.analysis.prompts import (
    STEP_ANALYSIS_OPTIONS,
    WORKFLOW_SUMMARY_OPTIONS,
    CompletionOptions,
    build_step_analysis_prompt,
    build_workflow_summary_prompt,
    fallback_step_analysis,
    fallback_workflow_summary,
)
from chainprobe.config.settings import Settings
from chainprobe.core.exceptions import AnalysisError, ResolutionError, ToolInvocationError
from chainprobe.core.interfaces import LLMClient, StateTracker, ToolClient
from chainprobe.core.results import WorkflowResult, WorkflowStepResult
from chainprobe.core.workflow import Workflow, WorkflowStep
from chainprobe.execution.assertions import AssertionEvaluator
from chainprobe.execution.dataflow import build_data_flow_graph
from chainprobe.execution.progress import (
    ProgressCallback,
    ProgressChannel,
    ProgressPhase,
    WorkflowProgress,
)
from chainprobe.execution.resolver import ArgumentResolver, first_text, is_error_response
from chainprobe.execution.state import StateTrackingOptions, StateTrackingSession

logger = logging.getLogger(__name__)
tool_logger = logging.getLogger("chainprobe.tool_calls")
llm_logger = logging.getLogger("chainprobe.llm")

DEFAULT_STEP_TIMEOUT_MS = 30000
UNKNOWN_ERROR = "Unknown error"


# -----------------------------------------------------------------------------
# Options
# -----------------------------------------------------------------------------


@dataclass
class TimeoutConfig:
    """Timeouts in milliseconds. `tool_call` overrides the step timeout."""
    tool_call: Optional[float] = None
    state_snapshot: float = 30000
    llm_analysis: float = 30000
    llm_summary: float = 45000


@dataclass
class ExecutorOptions:
    continue_on_error: bool = False
    step_timeout_ms: float = DEFAULT_STEP_TIMEOUT_MS
    analyze_steps: bool = True
    generate_summary: bool = True
    require_successful_dependencies: bool = False
    on_progress: Optional[ProgressCallback] = None
    state_tracking: StateTrackingOptions = field(default_factory=StateTrackingOptions)
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    # Checked at step boundaries only
    cancel_event: Optional[anyio.Event] = None

    @property
    def tool_call_timeout_ms(self) -> float:
        if self.timeouts.tool_call is not None:
            return self.timeouts.tool_call
        return self.step_timeout_ms

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "ExecutorOptions":
        """Build run options from settings; keyword overrides win."""
        values: dict = {
            "continue_on_error": settings.continue_on_error,
            "step_timeout_ms": settings.step_timeout_ms,
            "analyze_steps": settings.analyze_steps,
            "generate_summary": settings.generate_summary,
            "require_successful_dependencies": settings.require_successful_dependencies,
            "timeouts": TimeoutConfig(
                state_snapshot=settings.state_snapshot_timeout_ms,
                llm_analysis=settings.llm_analysis_timeout_ms,
                llm_summary=settings.llm_summary_timeout_ms,
            ),
        }
        values.update(overrides)
        return cls(**values)


# -----------------------------------------------------------------------------
# Per-run state
# -----------------------------------------------------------------------------


@dataclass
class _RunState:
    workflow: Workflow
    started: float = field(default_factory=time.perf_counter)
    step_results: List[WorkflowStepResult] = field(default_factory=list)

    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.started) * 1000, 2)

    @property
    def steps_failed(self) -> int:
        return sum(1 for r in self.step_results if not r.success)


def _tool_name(tool: Any) -> str:
    if isinstance(tool, str):
        return tool
    if isinstance(tool, Mapping):
        return str(tool.get("name", ""))
    return str(getattr(tool, "name", ""))


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


# -----------------------------------------------------------------------------
# Executor
# -----------------------------------------------------------------------------


class WorkflowExecutor:
    """Executes workflows against a tool server.

    Usage:
        executor = WorkflowExecutor(client, tools, llm=None,
                                    options=ExecutorOptions(analyze_steps=False))
        result = await executor.execute(workflow)
        if not result.success:
            print(f"Step {result.failed_step_index} failed: {result.failure_reason}")

    All per-run state lives in the execute() call, but use one executor per
    concurrently running workflow so progress subscribers stay separate.
    """

    def __init__(
        self,
        client: ToolClient,
        tools: Iterable[Any],
        llm: Optional[LLMClient] = None,
        options: Optional[ExecutorOptions] = None,
        state_tracker: Optional[StateTracker] = None,
    ):
        """Initialize executor.

        Args:
            client: Tool-call collaborator.
            tools: Capabilities the server exposes (names, mappings with a
                   "name" key, or objects with a `name` attribute).
            llm: Optional LLM for step analysis and summaries.
            options: Run options.
            state_tracker: Required for state tracking to take effect.
        """
        self.client = client
        self.tool_names = frozenset(_tool_name(t) for t in tools)
        self.llm = llm
        self.options = options or ExecutorOptions()
        self.state_tracker = state_tracker
        self.assertion_evaluator = AssertionEvaluator()
        self.progress = ProgressChannel()
        if self.options.on_progress is not None:
            self.progress.subscribe(self.options.on_progress)

        if self.options.state_tracking.enabled and state_tracker is None:
            logger.warning("State tracking enabled but no state tracker supplied; disabling")

    @property
    def state_tracking_enabled(self) -> bool:
        return self.options.state_tracking.enabled and self.state_tracker is not None

    async def execute(self, workflow: Workflow) -> WorkflowResult:
        """Execute a workflow.

        Args:
            workflow: The workflow to execute.

        Returns:
            WorkflowResult describing every attempted step and the outcome.
        """
        run = _RunState(workflow=workflow)
        total_steps = len(workflow.steps)

        logger.info(
            "Starting workflow execution",
            extra={
                "workflow_id": workflow.id,
                "workflow_name": workflow.name,
                "step_count": total_steps,
                "state_tracking_enabled": self.state_tracking_enabled,
            },
        )

        success = True
        failure_reason: Optional[str] = None
        failed_step_index: Optional[int] = None

        self._emit(run, ProgressPhase.STARTING, 0)

        session: Optional[StateTrackingSession] = None
        if self.state_tracking_enabled:
            session = StateTrackingSession(
                self.state_tracker,
                self.options.state_tracking,
                snapshot_timeout_ms=self.options.timeouts.state_snapshot,
            )
            await session.before_run()

        for index, step in enumerate(workflow.steps):
            if self._cancelled():
                logger.info("Workflow %s cancelled before step %d", workflow.id, index)
                success = False
                failure_reason = f"Workflow cancelled before step {index + 1}"
                break

            self._emit(run, ProgressPhase.EXECUTING, index, step)

            result = await self._execute_step(run, step, index)
            run.step_results.append(result)

            if session is not None:
                await session.after_step(index)

            if self.options.analyze_steps:
                self._emit(run, ProgressPhase.ANALYZING, index, step)
                result.analysis = await self._analyze_step(run.workflow, result)

            if result.success or step.optional:
                continue
            if success:
                success = False
                failure_reason = result.error or "Step failed"
                failed_step_index = index
            if not self.options.continue_on_error:
                break

        if session is not None:
            await session.after_run(len(run.step_results) - 1)

        data_flow = build_data_flow_graph(workflow, run.step_results)

        state_tracking = None
        if session is not None:
            state_tracking = await session.finish(run.step_results)

        summary: Optional[str] = None
        if self.options.generate_summary:
            self._emit(run, ProgressPhase.SUMMARIZING, total_steps)
            summary = await self._summarize(run, success)

        self._emit(run, ProgressPhase.COMPLETE, total_steps)

        duration_ms = run.elapsed_ms()
        logger.info(
            "Workflow execution complete",
            extra={
                "workflow_id": workflow.id,
                "success": success,
                "steps_completed": len(run.step_results),
                "steps_failed": run.steps_failed,
                "duration_ms": duration_ms,
            },
        )

        return WorkflowResult(
            workflow=workflow,
            steps=run.step_results,
            success=success,
            failure_reason=failure_reason,
            failed_step_index=failed_step_index,
            duration_ms=duration_ms,
            data_flow=data_flow,
            summary=summary,
            state_tracking=state_tracking,
        )

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    async def _execute_step(self, run: _RunState, step: WorkflowStep, index: int) -> WorkflowStepResult:
        started = time.perf_counter()

        if step.tool not in self.tool_names:
            return WorkflowStepResult(
                step=step,
                step_index=index,
                success=False,
                error=f"Tool not found: {step.tool}",
                resolved_args={},
                duration_ms=_elapsed_ms(started),
            )

        resolver = ArgumentResolver(run.step_results)

        if self.options.require_successful_dependencies:
            failed = resolver.failed_dependencies(step, index)
            if failed:
                return WorkflowStepResult(
                    step=step,
                    step_index=index,
                    success=False,
                    error=f"Step {index} depends on failed step {', '.join(str(i) for i in failed)}",
                    resolved_args=dict(step.args),
                    duration_ms=_elapsed_ms(started),
                )

        try:
            resolved_args = resolver.resolve_arguments(step, index)
        except ResolutionError as e:
            return WorkflowStepResult(
                step=step,
                step_index=index,
                success=False,
                error=f"Failed to resolve arguments: {e.message}",
                resolved_args=dict(step.args),
                duration_ms=_elapsed_ms(started),
            )

        response: Optional[Mapping[str, Any]] = None
        error: Optional[str] = None
        try:
            response = await self._call_tool(step, resolved_args)
            if is_error_response(response):
                error = first_text(response) or UNKNOWN_ERROR
        except ToolInvocationError as e:
            error = e.message

        assertion_results = None
        if step.assertions:
            assertion_results = self.assertion_evaluator.evaluate_all(step.assertions, response)
        failed_assertions = [r for r in assertion_results or [] if not r.passed]

        if error is None and failed_assertions:
            error = "Assertions failed: " + "; ".join(r.message or "" for r in failed_assertions)

        return WorkflowStepResult(
            step=step,
            step_index=index,
            success=error is None,
            response=response,
            error=error,
            resolved_args=resolved_args,
            assertion_results=assertion_results,
            duration_ms=_elapsed_ms(started),
        )

    async def _call_tool(self, step: WorkflowStep, args: dict) -> Mapping[str, Any]:
        """Call the tool, converting every failure into ToolInvocationError.

        On timeout the awaiting scope is cancelled; the remote operation may
        still complete on the server.
        """
        timeout_ms = self.options.tool_call_timeout_ms
        tool_logger.info("Tool call start name=%s timeout_ms=%d", step.tool, timeout_ms)
        try:
            with anyio.fail_after(timeout_ms / 1000):
                response = await self.client.call_tool(step.tool, args)
        except TimeoutError as exc:
            tool_logger.warning("Tool call timed out name=%s", step.tool)
            raise ToolInvocationError(
                f"Tool call '{step.tool}' timed out after {timeout_ms:g}ms",
                context={"tool": step.tool},
            ) from exc
        except Exception as exc:
            tool_logger.warning("Tool call failed name=%s error=%s", step.tool, exc)
            raise ToolInvocationError(str(exc) or UNKNOWN_ERROR, context={"tool": step.tool}) from exc

        if response is None:
            raise ToolInvocationError(f"Tool '{step.tool}' returned no response")
        tool_logger.info("Tool call complete name=%s is_error=%s", step.tool, is_error_response(response))
        return response

    # -------------------------------------------------------------------------
    # LLM commentary
    # -------------------------------------------------------------------------

    async def _complete(self, prompt: str, options: CompletionOptions, timeout_ms: float) -> str:
        if self.llm is None:
            raise AnalysisError("No LLM client configured")
        try:
            with anyio.fail_after(timeout_ms / 1000):
                return await self.llm.complete(prompt, options)
        except TimeoutError as exc:
            raise AnalysisError(f"LLM call timed out after {timeout_ms:g}ms") from exc
        except Exception as exc:
            raise AnalysisError(f"LLM call failed: {exc}") from exc

    async def _analyze_step(self, workflow: Workflow, result: WorkflowStepResult) -> str:
        prompt = build_step_analysis_prompt(
            workflow, result.step, result.step_index, result.response, result.error
        )
        try:
            return await self._complete(prompt, STEP_ANALYSIS_OPTIONS, self.options.timeouts.llm_analysis)
        except AnalysisError as e:
            llm_logger.debug("Step analysis unavailable, using fallback: %s", e.message)
            return fallback_step_analysis(result.error)

    async def _summarize(self, run: _RunState, success: bool) -> str:
        prompt = build_workflow_summary_prompt(run.workflow, run.step_results, success)
        try:
            return await self._complete(prompt, WORKFLOW_SUMMARY_OPTIONS, self.options.timeouts.llm_summary)
        except AnalysisError as e:
            llm_logger.debug("Workflow summary unavailable, using fallback: %s", e.message)
            return fallback_workflow_summary(run.workflow, run.step_results, success)

    # -------------------------------------------------------------------------
    # Progress / cancellation
    # -------------------------------------------------------------------------

    def _cancelled(self) -> bool:
        event = self.options.cancel_event
        return event is not None and event.is_set()

    def _emit(
        self,
        run: _RunState,
        phase: ProgressPhase,
        current_step: int,
        step: Optional[WorkflowStep] = None,
    ) -> None:
        if not self.progress.has_subscribers:
            return
        self.progress.emit(
            WorkflowProgress(
                phase=phase,
                workflow=run.workflow,
                current_step=current_step,
                total_steps=len(run.workflow.steps),
                steps_completed=len(run.step_results),
                steps_failed=run.steps_failed,
                elapsed_ms=run.elapsed_ms(),
                current_step_info=step,
            )
        )
