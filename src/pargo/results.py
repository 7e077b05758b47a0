from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one expression at one input position.

    ``consumed`` is only meaningful on success, and a failed result never
    carries a value.
    """

    success: bool
    consumed: int = 0
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, consumed: int, value: Any = None) -> "MatchResult":
        return cls(True, consumed, value, None)

    @classmethod
    def fail(cls, error: str = "Parse failed") -> "MatchResult":
        return cls(False, 0, None, error)

    def with_value(self, value: Any) -> "MatchResult":
        return MatchResult(self.success, self.consumed, value, self.error)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "consumed": self.consumed,
            "value": self.value,
            "error": self.error,
        }
