"""Prompt builders for optional workflow commentary."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from chainprobe.core.results import WorkflowStepResult
from chainprobe.core.workflow import Workflow, WorkflowStep


@dataclass(frozen=True)
class CompletionOptions:
    temperature: float = 0.3
    max_tokens: int = 200
    system: Optional[str] = None


STEP_ANALYSIS_OPTIONS = CompletionOptions(temperature=0.3, max_tokens=150)
WORKFLOW_SUMMARY_OPTIONS = CompletionOptions(temperature=0.3, max_tokens=200)


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, default=str, ensure_ascii=False)


def build_step_analysis_prompt(
    workflow: Workflow,
    step: WorkflowStep,
    step_index: int,
    response: Optional[Any],
    error: Optional[str],
) -> str:
    if error:
        response_text = f"Error: {error}"
    elif response is not None:
        response_text = _dump(response)
    else:
        response_text = "No response"

    return f"""Analyze this workflow step result.

Workflow: {workflow.name}
Step {step_index + 1}/{len(workflow.steps)}: {step.description}
Tool: {step.tool}
Arguments: {_dump(step.args)}

Response:
{response_text}

Provide a brief (1-2 sentence) analysis of what this step accomplished and any notable observations."""


def build_workflow_summary_prompt(
    workflow: Workflow,
    step_results: Sequence[WorkflowStepResult],
    success: bool,
) -> str:
    lines = []
    for i, result in enumerate(step_results):
        status = "PASS" if result.success else "FAIL"
        detail = result.analysis or result.error or "Completed"
        lines.append(f"{i + 1}. [{status}] {result.step.description}: {detail}")
    step_summaries = "\n".join(lines)

    return f"""Summarize this workflow execution.

Workflow: {workflow.name}
Description: {workflow.description}
Expected Outcome: {workflow.expected_outcome}
Overall Success: {str(success).lower()}

Step Results:
{step_summaries}

Provide a 2-3 sentence summary of what the workflow demonstrated and any significant findings."""


def fallback_step_analysis(error: Optional[str]) -> str:
    return f"Step failed: {error}" if error else "Step completed."


def fallback_workflow_summary(
    workflow: Workflow, step_results: Sequence[WorkflowStepResult], success: bool
) -> str:
    if success:
        return f'Workflow "{workflow.name}" completed successfully with {len(step_results)} steps.'
    failed_at = next(
        (i + 1 for i, r in enumerate(step_results) if not r.success),
        len(step_results),
    )
    return f'Workflow "{workflow.name}" failed at step {failed_at}.'
