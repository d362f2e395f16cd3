from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Outcome(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FATAL = "fatal"


@dataclass(frozen=True)
class StageResult:
    """Tagged result of one pipeline stage."""
    outcome: Outcome
    value: Any = None
    reason: Optional[str] = None
    error: Optional[Exception] = None

    @classmethod
    def ok(cls, value=None) -> "StageResult":
        return cls(Outcome.OK, value=value)

    @classmethod
    def degraded(cls, reason: str, value=None, error: Optional[Exception] = None) -> "StageResult":
        return cls(Outcome.DEGRADED, value=value, reason=reason, error=error)

    @classmethod
    def fatal(cls, reason: str, error: Optional[Exception] = None) -> "StageResult":
        return cls(Outcome.FATAL, reason=reason, error=error)
