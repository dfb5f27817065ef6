"""Deterministic offline design analyzer.

Produces a structurally valid AnalysisResult without calling any provider.
Used when the caller asks for mock mode and as the fallback when a real
LLM call fails. Content is fixed; only the set of levels varies.
"""

import copy
import logging
import time
from collections.abc import Callable
from typing import Any

from aura.models.analysis import LEVEL_RESULT_KEYS, AnalysisLevel, AnalysisResult

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 1.5

_BASE_INSIGHTS = (
    "Visual design analysis reveals a modern, user-centric interface with clear information "
    "hierarchy, intuitive navigation patterns, and professional visual design. The interface "
    "demonstrates strong UX principles with accessible design patterns and responsive layout "
    "considerations."
)

_DESIGN_ANALYSIS = (
    "The design showcases contemporary UI patterns with clean typography, consistent spacing, "
    "and purposeful color usage. Key interface elements include streamlined navigation, "
    "prominent calls-to-action, well-organized content sections, and user-friendly form "
    "designs. The visual hierarchy guides users through optimal task completion flows."
)

_USER_FLOWS = [
    "User onboarding and account setup",
    "Primary navigation and content discovery",
    "Task completion and form submission",
    "Settings and profile management",
]

_ACCESSIBILITY_INSIGHTS = [
    "High contrast ratios for text readability",
    "Clear focus indicators for keyboard navigation",
    "Sufficient touch target sizes for mobile users",
    "Semantic structure for screen reader compatibility",
]

_STORIES: list[dict[str, Any]] = [
    {
        "id": "STORY-DESIGN-REV-001",
        "title": "As a user, I want a clear navigation system",
        "description": "Intuitive navigation interface extracted from design analysis",
        "category": "navigation",
        "priority": "high",
        "acceptanceCriteria": [
            "Navigation is clearly visible",
            "Menu items are logically organized",
            "Mobile navigation works properly",
        ],
        "businessValue": "Enables users to easily find and access different sections of the application",
        "workflowLevel": "story",
        "storyPoints": 3,
        "labels": ["ui", "navigation"],
    },
    {
        "id": "STORY-DESIGN-REV-002",
        "title": "As a user, I want responsive design across devices",
        "description": "Mobile-responsive interface capabilities identified in design",
        "category": "responsive-design",
        "priority": "high",
        "acceptanceCriteria": [
            "Layout adapts to mobile screens",
            "Touch targets are appropriately sized",
            "Content remains readable",
        ],
        "businessValue": "Ensures optimal user experience across all device types",
        "workflowLevel": "story",
        "storyPoints": 5,
        "labels": ["responsive", "mobile"],
    },
]

_EPIC = {
    "id": "EPIC-DESIGN-REV-001",
    "title": "User Interface Implementation Epic",
    "description": (
        "Complete user interface development based on design specifications and user "
        "experience requirements"
    ),
    "category": "ui-development",
    "priority": "high",
    "acceptanceCriteria": [
        "All design elements implemented accurately",
        "User flows work as intended",
        "Responsive design functions properly",
    ],
    "businessValue": "Delivers comprehensive user interface that matches design vision and user needs",
    "workflowLevel": "epic",
    "estimatedEffort": "Large",
    "sprintEstimate": 6,
}

_FEATURE = {
    "id": "FEAT-DESIGN-REV-001",
    "title": "Interactive User Interface Feature",
    "description": "User interface components and interaction patterns based on design analysis",
    "category": "user-interface",
    "priority": "high",
    "acceptanceCriteria": [
        "Modern, clean interface design",
        "Intuitive user interactions",
        "Consistent design system",
    ],
    "businessValue": "Provides users with modern, engaging interface that drives user satisfaction",
    "workflowLevel": "feature",
    "estimatedEffort": "Medium",
    "targetRelease": "v1.0",
}

_INITIATIVE = {
    "id": "INIT-DESIGN-REV-001",
    "title": "User Experience Enhancement Initiative",
    "description": (
        "Comprehensive user experience improvement based on modern design principles and "
        "user-centered approach"
    ),
    "category": "user-experience",
    "priority": "high",
    "acceptanceCriteria": [
        "Improved user satisfaction scores",
        "Reduced task completion time",
        "Higher user engagement",
    ],
    "businessValue": (
        "Establishes superior user experience that differentiates the product and drives "
        "user retention"
    ),
    "workflowLevel": "initiative",
    "estimatedEffort": "Extra Large",
    "strategicAlignment": "User experience excellence",
}

_BUSINESS_BRIEF = {
    "id": "BB-DESIGN-REV-001",
    "title": "UI/UX Design Business Brief",
    "description": (
        "Comprehensive business context extracted from visual design analysis and user "
        "experience requirements"
    ),
    "businessObjective": (
        "Deliver exceptional user experience through modern, intuitive interface design that "
        "drives user engagement and business outcomes"
    ),
    "quantifiableBusinessOutcomes": [
        "Increase user engagement by 40%",
        "Improve task completion rates by 25%",
        "Reduce user onboarding time by 50%",
        "Achieve 95% user satisfaction score",
    ],
}

# Payload per level above story; businessBrief is a single record, the rest are lists
_LEVEL_PAYLOADS: dict[AnalysisLevel, Any] = {
    AnalysisLevel.EPIC: [_EPIC],
    AnalysisLevel.FEATURE: [_FEATURE],
    AnalysisLevel.INITIATIVE: [_INITIATIVE],
    AnalysisLevel.BUSINESS_BRIEF: _BUSINESS_BRIEF,
}


class MockAnalyzer:
    """Fixed-content analyzer with a simulated processing delay.

    Requesting level L returns the payload for L and for every level below
    it (story < epic < feature < initiative < business-brief).
    """

    def __init__(
        self,
        delay: float = DEFAULT_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the mock analyzer.

        Args:
            delay: Simulated latency in seconds (not data-dependent)
            sleep: Sleep function, replaceable in tests
        """
        self.delay = delay
        self._sleep = sleep

    def analyze(self, level: AnalysisLevel | str, has_image: bool = False) -> AnalysisResult:
        """Generate the mock analysis.

        Args:
            level: Requested abstraction level
            has_image: Whether an image accompanied the request

        Returns:
            Fresh AnalysisResult (callers may mutate it freely)
        """
        level = AnalysisLevel.parse(level)

        if self.delay > 0:
            self._sleep(self.delay)

        detail = "detailed visual examination" if has_image else "design pattern review"
        result: AnalysisResult = {
            "analysisDepth": level.value,
            "extractedInsights": f"{_BASE_INSIGHTS} Analysis includes {detail}.",
            "designAnalysis": _DESIGN_ANALYSIS,
            "userFlows": list(_USER_FLOWS),
            "accessibilityInsights": list(_ACCESSIBILITY_INSIGHTS),
            "stories": copy.deepcopy(_STORIES),
        }

        for item_level, payload in _LEVEL_PAYLOADS.items():
            if level.includes(item_level):
                result[LEVEL_RESULT_KEYS[item_level]] = copy.deepcopy(payload)

        logger.debug("Mock analysis generated for level %s", level.value)
        return result
