"""Analysis result entities.

An AnalysisResult is a plain JSON mapping (it is produced by the gateway,
a provider, or the mock analyzer and handed straight back to the caller).
This module holds the vocabulary around it:
- AnalysisLevel: the five work-item abstraction levels and their order
- Provenance keys added when a real-LLM request degraded to the mock
"""

from enum import Enum
from typing import Any

# AnalysisResult is intentionally untyped beyond "JSON object"
AnalysisResult = dict[str, Any]

# Provenance fields added on mock fallback
ANALYSIS_MODE_KEY = "analysisMode"
REQUESTED_MODE_KEY = "requestedMode"
FALLBACK_REASON_KEY = "fallbackReason"

MOCK_FALLBACK_MODE = "mock-fallback"
REAL_LLM_MODE = "real-llm"


class AnalysisLevel(Enum):
    """Work-item abstraction level.

    Levels are ordered story < epic < feature < initiative < business-brief.
    Requesting a level includes every level below it.
    """

    STORY = "story"
    EPIC = "epic"
    FEATURE = "feature"
    INITIATIVE = "initiative"
    BUSINESS_BRIEF = "business-brief"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    def includes(self, other: "AnalysisLevel") -> bool:
        """Return True if a request at this level includes `other` items."""
        return other.rank <= self.rank

    @property
    def display_name(self) -> str:
        return self.value.replace("-", " ").title()

    @classmethod
    def parse(cls, value: "str | AnalysisLevel") -> "AnalysisLevel":
        """Coerce a string (or level) into an AnalysisLevel.

        Raises:
            ValueError: If the value is not a known level
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = [level.value for level in cls]
            raise ValueError(f"Invalid analysis level '{value}'. Valid: {valid}") from None


_LEVEL_ORDER = [
    AnalysisLevel.STORY,
    AnalysisLevel.EPIC,
    AnalysisLevel.FEATURE,
    AnalysisLevel.INITIATIVE,
    AnalysisLevel.BUSINESS_BRIEF,
]

# Result key holding the items of each level
LEVEL_RESULT_KEYS = {
    AnalysisLevel.STORY: "stories",
    AnalysisLevel.EPIC: "epics",
    AnalysisLevel.FEATURE: "features",
    AnalysisLevel.INITIATIVE: "initiatives",
    AnalysisLevel.BUSINESS_BRIEF: "businessBrief",
}


def is_fallback(result: AnalysisResult) -> bool:
    """Return True if the result came from the mock after a failed real call."""
    return result.get(ANALYSIS_MODE_KEY) == MOCK_FALLBACK_MODE
