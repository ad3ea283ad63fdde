"""Data-flow graph derivation.

Edges are derived from the workflow definition alone, so they exist for
every well-formed argument mapping even when the consuming step never ran
or its resolution failed. Sample values are attached on a best-effort
basis from whatever results were produced.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from chainprobe.core.exceptions import ResolutionError
from chainprobe.core.results import DataFlowEdge, WorkflowStepResult
from chainprobe.core.workflow import Workflow
from chainprobe.execution.parser import parse_step_reference
from chainprobe.execution.resolver import ArgumentResolver
from chainprobe.execution.types import MISSING

logger = logging.getLogger(__name__)


def build_data_flow_graph(
    workflow: Workflow,
    step_results: Sequence[WorkflowStepResult] = (),
) -> List[DataFlowEdge]:
    """Build one edge per well-formed argument mapping.

    Args:
        workflow: The full workflow definition.
        step_results: Results produced so far, used for sample values.

    Returns:
        Edges in step order, then mapping declaration order.
    """
    resolver = ArgumentResolver(step_results)
    edges: List[DataFlowEdge] = []

    for index, step in enumerate(workflow.steps):
        for target_param, expression in (step.arg_mapping or {}).items():
            try:
                ref = parse_step_reference(expression)
            except ResolutionError:
                continue

            sample_value = None
            try:
                value = resolver.resolve(ref, index)
                if value is not MISSING:
                    sample_value = value
            except Exception as e:
                logger.debug("No sample value for %s -> step %d: %s", ref, index, e)

            edges.append(
                DataFlowEdge(
                    from_step=ref.step_index,
                    to_step=index,
                    source_path=ref.source_path,
                    target_param=target_param,
                    sample_value=sample_value,
                )
            )

    return edges
