"""Workflow definition documents."""

from chainprobe.definitions.loader import (
    DEFAULT_WORKFLOWS_FILE,
    load_workflows,
    parse_workflows,
    try_load_default_workflows,
)
from chainprobe.definitions.templates import generate_sample_workflow_yaml

__all__ = [
    "DEFAULT_WORKFLOWS_FILE",
    "load_workflows",
    "parse_workflows",
    "try_load_default_workflows",
    "generate_sample_workflow_yaml",
]
