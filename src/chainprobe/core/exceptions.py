"""Custom exception hierarchy for chainprobe."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ChainProbeError(Exception):
    """Base exception type for all chainprobe errors."""

    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"


class DefinitionError(ChainProbeError):
    """Raised when a workflow definition document is missing or malformed."""


class LLMConfigError(ChainProbeError):
    """Raised when the LLM adapter is missing credentials or a model name."""


# -----------------------------------------------------------------------------
# Run-time errors (captured into the WorkflowResult, never raised from execute)
# -----------------------------------------------------------------------------


class ResolutionError(ChainProbeError):
    """Raised when an argument mapping cannot be resolved."""


class PathSyntaxError(ResolutionError):
    """Raised when a path expression does not match the grammar."""


class ToolInvocationError(ChainProbeError):
    """Raised when a tool call throws, times out, or returns an error result."""


class AnalysisError(ChainProbeError):
    """Raised when an LLM analysis or summary request fails."""
