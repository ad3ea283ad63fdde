"""Expression tree types for parsed path expressions"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class _Missing:
    """Marker for a value that is absent (as opposed to JSON null)"""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


class PathRoot(str, Enum):
    """What a step reference navigates from"""
    RESULT = "result"      # JSON-decoded first text block
    RESPONSE = "response"  # raw tool-call result


@dataclass(frozen=True)
class Segment:
    """One dotted path segment, optionally indexed (e.g. items[0])"""
    name: str
    index: Optional[int] = None

    def __str__(self) -> str:
        if self.index is None:
            return self.name
        return f"{self.name}[{self.index}]"


@dataclass(frozen=True)
class StepReference:
    """Parsed ``$steps[N].root.seg.seg`` expression"""
    step_index: int
    root: PathRoot
    segments: Tuple[Segment, ...] = ()

    @property
    def source_path(self) -> str:
        """Path after the step selector, e.g. 'result.items[0].id'"""
        return ".".join([self.root.value] + [str(s) for s in self.segments])

    def __str__(self) -> str:
        return f"$steps[{self.step_index}].{self.source_path}"
