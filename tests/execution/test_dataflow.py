"""Tests for data-flow graph derivation"""

from chainprobe.core.results import WorkflowStepResult
from chainprobe.core.workflow import Workflow, WorkflowStep
from chainprobe.execution.dataflow import build_data_flow_graph
from tests.fakes import text_response


def _workflow(*steps):
    return Workflow(id="wf", name="WF", steps=list(steps))


class TestDataFlowGraph:

    def test_no_mappings_no_edges(self):
        workflow = _workflow(WorkflowStep(tool="a"), WorkflowStep(tool="b"))
        assert build_data_flow_graph(workflow) == []

    def test_edges_in_step_then_declaration_order(self):
        workflow = _workflow(
            WorkflowStep(tool="search"),
            WorkflowStep(tool="get", arg_mapping={"id": "$steps[0].result.items[0].id"}),
            WorkflowStep(
                tool="update",
                arg_mapping={"name": "$steps[1].result.name", "id": "$steps[0].result.items[0].id"},
            ),
        )
        edges = build_data_flow_graph(workflow)
        assert [(e.from_step, e.to_step, e.target_param) for e in edges] == [
            (0, 1, "id"),
            (1, 2, "name"),
            (0, 2, "id"),
        ]
        assert edges[0].source_path == "result.items[0].id"
        assert all(e.sample_value is None for e in edges)

    def test_sample_values_from_results(self):
        workflow = _workflow(
            WorkflowStep(tool="search"),
            WorkflowStep(tool="get", arg_mapping={"id": "$steps[0].result.items[0].id"}),
        )
        results = [
            WorkflowStepResult(
                step=workflow.steps[0],
                step_index=0,
                success=True,
                response=text_response({"items": [{"id": "x9"}]}),
            )
        ]
        edges = build_data_flow_graph(workflow, results)
        assert edges[0].sample_value == "x9"

    def test_forward_reference_still_produces_edge(self):
        workflow = _workflow(
            WorkflowStep(tool="a", arg_mapping={"x": "$steps[1].result.id"}),
            WorkflowStep(tool="b"),
        )
        edges = build_data_flow_graph(workflow, [])
        assert len(edges) == 1
        assert (edges[0].from_step, edges[0].to_step) == (1, 0)
        assert edges[0].sample_value is None

    def test_malformed_mapping_is_skipped(self):
        workflow = _workflow(
            WorkflowStep(tool="a"),
            WorkflowStep(tool="b", arg_mapping={"x": "$steps[0].bogus", "y": "$steps[0].result"}),
        )
        edges = build_data_flow_graph(workflow)
        assert [e.target_param for e in edges] == ["y"]
