"""Unit tests for the deterministic mock analyzer."""

import pytest

from aura.llm.mock import MockAnalyzer
from aura.models.analysis import AnalysisLevel

BASE_KEYS = {
    "analysisDepth",
    "extractedInsights",
    "designAnalysis",
    "userFlows",
    "accessibilityInsights",
    "stories",
}

LEVELS_ASCENDING = [
    AnalysisLevel.STORY,
    AnalysisLevel.EPIC,
    AnalysisLevel.FEATURE,
    AnalysisLevel.INITIATIVE,
    AnalysisLevel.BUSINESS_BRIEF,
]


class TestMockAnalyzer:
    """Tests for MockAnalyzer.analyze."""

    def test_story_level(self, mock_analyzer: MockAnalyzer) -> None:
        """Test the minimal result."""
        result = mock_analyzer.analyze("story")

        assert set(result) == BASE_KEYS
        assert result["analysisDepth"] == "story"
        assert [s["id"] for s in result["stories"]] == ["STORY-DESIGN-REV-001", "STORY-DESIGN-REV-002"]

    @pytest.mark.parametrize("has_image", [True, False])
    def test_key_sets_strictly_grow_with_level(
        self, mock_analyzer: MockAnalyzer, has_image: bool
    ) -> None:
        """Test that each level's key set strictly contains the one below it."""
        key_sets = [set(mock_analyzer.analyze(level, has_image)) for level in LEVELS_ASCENDING]

        for lower, higher in zip(key_sets, key_sets[1:], strict=False):
            assert lower < higher

    def test_epic_level(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that an epic request adds epics only."""
        result = mock_analyzer.analyze(AnalysisLevel.EPIC)

        assert len(result["stories"]) == 2
        assert len(result["epics"]) == 1
        assert "features" not in result
        assert "initiatives" not in result
        assert "businessBrief" not in result

    def test_business_brief_is_a_record(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that the business brief is a single object, not a list."""
        result = mock_analyzer.analyze("business-brief")

        assert result["businessBrief"]["id"] == "BB-DESIGN-REV-001"
        assert len(result["businessBrief"]["quantifiableBusinessOutcomes"]) == 4
        assert result["initiatives"][0]["id"] == "INIT-DESIGN-REV-001"
        assert result["features"][0]["id"] == "FEAT-DESIGN-REV-001"

    def test_image_flag_changes_insights_only(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that has_image only affects the insights text."""
        with_image = mock_analyzer.analyze("feature", has_image=True)
        without = mock_analyzer.analyze("feature", has_image=False)

        assert with_image["extractedInsights"].endswith("detailed visual examination.")
        assert without["extractedInsights"].endswith("design pattern review.")
        with_image.pop("extractedInsights")
        without.pop("extractedInsights")
        assert with_image == without

    def test_results_are_independent(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that mutating one result does not leak into the next."""
        first = mock_analyzer.analyze("epic")
        first["stories"][0]["title"] = "changed"
        first["epics"].clear()

        second = mock_analyzer.analyze("epic")

        assert second["stories"][0]["title"] != "changed"
        assert len(second["epics"]) == 1

    def test_delay_uses_sleep(self) -> None:
        """Test that the simulated latency goes through the sleep hook."""
        calls: list[float] = []
        analyzer = MockAnalyzer(delay=1.5, sleep=calls.append)

        analyzer.analyze("story")

        assert calls == [1.5]

    def test_zero_delay_skips_sleep(self) -> None:
        """Test that no sleep happens with delay=0."""
        calls: list[float] = []

        MockAnalyzer(delay=0, sleep=calls.append).analyze("story")

        assert calls == []

    def test_invalid_level(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that unknown levels raise."""
        with pytest.raises(ValueError):
            mock_analyzer.analyze("saga")
