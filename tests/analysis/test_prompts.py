"""Tests for step-analysis and summary prompts"""

from chainprobe.analysis.prompts import (
    STEP_ANALYSIS_OPTIONS,
    WORKFLOW_SUMMARY_OPTIONS,
    build_step_analysis_prompt,
    build_workflow_summary_prompt,
    fallback_step_analysis,
    fallback_workflow_summary,
)
from chainprobe.core.results import WorkflowStepResult
from chainprobe.core.workflow import Workflow, WorkflowStep


def _workflow():
    return Workflow(
        id="wf",
        name="Inventory",
        description="Create then read",
        steps=[
            WorkflowStep(tool="create_item", description="Create it", args={"name": "n"}),
            WorkflowStep(tool="get_item", description="Read it"),
        ],
    )


class TestPrompts:

    def test_completion_options(self):
        assert STEP_ANALYSIS_OPTIONS.temperature == 0.3
        assert STEP_ANALYSIS_OPTIONS.max_tokens == 150
        assert WORKFLOW_SUMMARY_OPTIONS.max_tokens == 200

    def test_step_prompt_with_response(self):
        workflow = _workflow()
        prompt = build_step_analysis_prompt(workflow, workflow.steps[0], 0, {"content": []}, None)
        assert "Workflow: Inventory" in prompt
        assert "Step 1/2: Create it" in prompt
        assert "Tool: create_item" in prompt
        assert '"name": "n"' in prompt
        assert '"content": []' in prompt

    def test_step_prompt_with_error(self):
        workflow = _workflow()
        prompt = build_step_analysis_prompt(workflow, workflow.steps[1], 1, None, "boom")
        assert "Error: boom" in prompt

    def test_step_prompt_without_response(self):
        workflow = _workflow()
        prompt = build_step_analysis_prompt(workflow, workflow.steps[1], 1, None, None)
        assert "No response" in prompt

    def test_summary_prompt(self):
        workflow = _workflow()
        results = [
            WorkflowStepResult(step=workflow.steps[0], step_index=0, success=True, analysis="Created."),
            WorkflowStepResult(step=workflow.steps[1], step_index=1, success=False, error="not found"),
        ]
        prompt = build_workflow_summary_prompt(workflow, results, False)
        assert "Overall Success: false" in prompt
        assert "Expected Outcome: Workflow completes successfully" in prompt
        assert "1. [PASS] Create it: Created." in prompt
        assert "2. [FAIL] Read it: not found" in prompt


class TestFallbacks:

    def test_step_fallbacks(self):
        assert fallback_step_analysis(None) == "Step completed."
        assert fallback_step_analysis("bad input") == "Step failed: bad input"

    def test_summary_fallbacks(self):
        workflow = _workflow()
        ok = WorkflowStepResult(step=workflow.steps[0], step_index=0, success=True)
        bad = WorkflowStepResult(step=workflow.steps[1], step_index=1, success=False)

        assert fallback_workflow_summary(workflow, [ok, ok], True) == (
            'Workflow "Inventory" completed successfully with 2 steps.'
        )
        assert fallback_workflow_summary(workflow, [ok, bad], False) == 'Workflow "Inventory" failed at step 2.'
