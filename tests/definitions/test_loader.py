"""Tests for the workflow definition loader"""

import logging
from textwrap import dedent

import pytest

from chainprobe.core.exceptions import DefinitionError
from chainprobe.core.workflow import AssertionCondition
from chainprobe.definitions.loader import (
    DEFAULT_WORKFLOWS_FILE,
    load_workflows,
    parse_workflows,
    try_load_default_workflows,
)
from chainprobe.definitions.templates import generate_sample_workflow_yaml


SINGLE = dedent("""
    id: search_and_get
    name: Search and Get
    description: Search then fetch
    expectedOutcome: The item is fetched
    steps:
      - tool: search_items
        args:
          query: widgets
        assertions:
          - path: items
            condition: exists
      - tool: get_item
        optional: true
        argMapping:
          id: "$steps[0].result.items[0].id"
""")

MULTI = dedent("""
    id: first
    name: First
    steps:
      - tool: ping
    ---
    id: second
    name: Second
    steps:
      - tool: pong
""")


# -----------------------------------------------------------------------------
# Valid documents
# -----------------------------------------------------------------------------


class TestParseValid:

    def test_single_workflow(self):
        [workflow] = parse_workflows(SINGLE)
        assert workflow.id == "search_and_get"
        assert workflow.description == "Search then fetch"
        assert workflow.expected_outcome == "The item is fetched"
        assert workflow.discovered is False
        assert [s.tool for s in workflow.steps] == ["search_items", "get_item"]

        search, get = workflow.steps
        assert search.args == {"query": "widgets"}
        assert search.assertions[0].condition == AssertionCondition.EXISTS
        assert search.optional is False
        assert get.optional is True
        assert get.arg_mapping == {"id": "$steps[0].result.items[0].id"}

    def test_defaults(self):
        [workflow] = parse_workflows("id: w\nname: Wide\nsteps:\n  - tool: ping\n")
        assert workflow.description == "Workflow: Wide"
        assert workflow.expected_outcome == "Workflow completes successfully"
        assert workflow.steps[0].description == "Call ping"
        assert workflow.steps[0].args == {}
        assert workflow.steps[0].arg_mapping is None
        assert workflow.steps[0].assertions is None

    def test_multi_document(self):
        workflows = parse_workflows(MULTI)
        assert [w.id for w in workflows] == ["first", "second"]

    def test_list_document(self):
        content = dedent("""
            - id: a
              name: A
              steps: [{tool: ping}]
            - id: b
              name: B
              steps: [{tool: ping}]
        """)
        assert [w.id for w in parse_workflows(content)] == ["a", "b"]

    def test_empty_documents_are_skipped(self):
        assert [w.id for w in parse_workflows("---\n" + MULTI + "\n---\n")] == ["first", "second"]

    def test_assertion_values_keep_types(self):
        content = dedent("""
            id: w
            name: W
            steps:
              - tool: get
                assertions:
                  - path: count
                    condition: equals
                    value: 4
                  - path: label
                    condition: equals
                    value: "4"
        """)
        assertions = parse_workflows(content)[0].steps[0].assertions
        assert assertions[0].value == 4 and isinstance(assertions[0].value, int)
        assert assertions[1].value == "4"

    def test_round_trip_to_dict(self):
        [workflow] = parse_workflows(SINGLE)
        data = workflow.to_dict()
        assert data["expectedOutcome"] == "The item is fetched"
        assert data["steps"][1]["argMapping"] == {"id": "$steps[0].result.items[0].id"}

    def test_sample_template_loads(self):
        workflows = parse_workflows(generate_sample_workflow_yaml())
        assert [w.id for w in workflows] == ["search_and_get", "create_and_verify"]
        assert workflows[0].steps[2].optional is True


# -----------------------------------------------------------------------------
# Invalid documents
# -----------------------------------------------------------------------------


class TestParseInvalid:

    def test_bad_arg_mapping_names_param_step_and_workflow(self):
        content = dedent("""
            id: wf-1
            name: WF
            steps:
              - tool: a
              - tool: b
                argMapping:
                  x: "result.id"
        """)
        with pytest.raises(DefinitionError) as exc_info:
            parse_workflows(content)
        message = exc_info.value.message
        assert '"x"' in message
        assert "step 2" in message
        assert '"wf-1"' in message
        assert "$steps[N].result.path.to.value" in message

    def test_prefix_only_check_defers_grammar(self):
        content = "id: w\nname: W\nsteps:\n  - tool: a\n    argMapping:\n      x: \"$steps[0].bogus\"\n"
        [workflow] = parse_workflows(content)
        assert workflow.steps[0].arg_mapping == {"x": "$steps[0].bogus"}

    @pytest.mark.parametrize("content,fragment", [
        ("name: W\nsteps:\n  - tool: a\n", "missing required field: id"),
        ("id: w\nsteps:\n  - tool: a\n", "missing required field: name"),
        ("id: w\nname: W\n", "missing required field: steps"),
        ("id: w\nname: W\nsteps: []\n", "missing required field: steps"),
        ("id: w\nname: W\nsteps:\n  - args: {}\n", "missing required field: tool"),
        ("id: w\nname: W\nsteps:\n  - tool: a\n    assertions:\n      - condition: exists\n", "missing required field: path"),
        ("id: w\nname: W\nsteps:\n  - tool: a\n    assertions:\n      - path: p\n        condition: matches\n", "invalid condition"),
        ("id: w\nname: W\nsteps:\n  - tool: a\n    optional: sometimes\n", "Invalid optional flag"),
        ("just a string\n", "must be a mapping"),
    ])
    def test_structural_errors(self, content, fragment):
        with pytest.raises(DefinitionError) as exc_info:
            parse_workflows(content)
        assert fragment in exc_info.value.message

    def test_invalid_condition_lists_valid_ones(self):
        content = "id: w\nname: W\nsteps:\n  - tool: a\n    assertions:\n      - path: p\n        condition: nope\n"
        with pytest.raises(DefinitionError, match="exists, truthy, equals, contains, type"):
            parse_workflows(content)

    def test_yaml_syntax_error(self):
        with pytest.raises(DefinitionError, match="YAML parse error"):
            parse_workflows("id: [unclosed\n")

    def test_empty_file(self):
        with pytest.raises(DefinitionError, match="No workflows defined"):
            parse_workflows("")

    def test_one_bad_workflow_rejects_file(self):
        with pytest.raises(DefinitionError):
            parse_workflows(MULTI + "\n---\nid: third\nname: Third\n")


# -----------------------------------------------------------------------------
# Files
# -----------------------------------------------------------------------------


class TestFiles:

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "flows.yaml"
        path.write_text(MULTI, encoding="utf-8")
        assert [w.id for w in load_workflows(path)] == ["first", "second"]
        assert [w.id for w in load_workflows(str(path))] == ["first", "second"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(DefinitionError, match="Workflow file not found"):
            load_workflows(tmp_path / "absent.yaml")

    def test_default_file_absent(self, tmp_path):
        assert try_load_default_workflows(tmp_path) is None

    def test_default_file_present(self, tmp_path):
        (tmp_path / DEFAULT_WORKFLOWS_FILE).write_text(MULTI, encoding="utf-8")
        assert len(try_load_default_workflows(tmp_path)) == 2

    def test_default_file_invalid(self, tmp_path, caplog):
        (tmp_path / DEFAULT_WORKFLOWS_FILE).write_text("id: w\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            assert try_load_default_workflows(tmp_path) is None
        assert "Ignoring invalid workflow file" in caplog.text

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "latin1.yaml"
        path.write_bytes(b"id: w\nname: caf\xe9\nsteps:\n  - tool: ping\n")
        with pytest.raises(DefinitionError, match="Could not read workflow file"):
            load_workflows(path)

    def test_default_file_not_utf8(self, tmp_path):
        (tmp_path / DEFAULT_WORKFLOWS_FILE).write_bytes(b"id: w\nname: caf\xe9\n")
        assert try_load_default_workflows(tmp_path) is None
