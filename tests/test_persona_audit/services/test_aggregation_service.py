"""Tests for persona_audit.services.aggregation_service module."""

import pytest
from persona_audit.models import EvaluationReport, Persona, UES_RUBRIC
from persona_audit.services.aggregation_service import score_level, summarize


def report(overall, scores=None, issues=(), suggestions=()):
    """Report with arbitrary dimension scores as {label: score}."""
    return EvaluationReport.from_dict({
        "overallScore": overall,
        "dimensionScores": [
            {"dimension": label, "score": score, "comment": f"{label} note"}
            for label, score in (scores or {}).items()
        ],
        "executiveSummary": "",
        "personaPerspective": "",
        "issues": [
            {"severity": severity, "location": location, "description": "d", "recommendation": "r"}
            for severity, location in issues
        ],
        "optimizationSuggestions": list(suggestions),
    })


@pytest.fixture
def senior_and_geek():
    return [Persona(id="1", name="Senior"), Persona(id="2", name="Geek")]


class TestScoreLevel:
    """Tests for score_level thresholds."""

    @pytest.mark.parametrize("score,level", [
        (100, "Excellent"),
        (85, "Excellent"),
        (84, "Good"),
        (70, "Good"),
        (55, "Fair"),
        (54, "Needs Improvement"),
        (0, "Needs Improvement"),
    ])
    def test_levels(self, score, level):
        assert score_level(score) == level


class TestSummarize:
    """Tests for summarize."""

    def test_empty(self):
        summary = summarize({}, [])
        assert summary.average_overall_score == 0
        assert summary.persona_count == 0
        assert summary.strengths == []
        assert summary.weaknesses == []
        assert summary.issue_hotspots == []
        assert summary.severity_histogram == {}
        assert summary.heatmap_rows == []
        assert summary.total_suggestions == 0

    def test_average_overall(self, senior_and_geek):
        summary = summarize({"1": report(60), "2": report(90)}, senior_and_geek)
        assert summary.average_overall_score == 75
        assert summary.score_level == "Good"

    def test_rounds_half_up(self, senior_and_geek):
        summary = summarize({"1": report(74), "2": report(75)}, senior_and_geek)
        assert summary.average_overall_score == 75

    def test_reports_without_persona_dropped(self, senior_and_geek):
        summary = summarize({"1": report(60), "9": report(10)}, senior_and_geek)
        assert summary.persona_count == 1
        assert summary.average_overall_score == 60

    def test_dimension_statistics(self, senior_and_geek):
        summary = summarize(
            {
                "1": report(70, {"Clarity": 90, "Usability": 50}),
                "2": report(80, {"Clarity": 90, "Usability": 71}),
            },
            senior_and_geek,
        )
        clarity, usability = summary.dimension_stats
        assert clarity.dimension == "Clarity"
        # Tie goes to the first persona in input order
        assert clarity.best.persona_name == "Senior"
        assert clarity.worst.persona_name == "Senior"
        assert clarity.range == 0
        assert usability.average == 61
        assert usability.min == 50
        assert usability.max == 71
        assert usability.range == 21
        assert usability.best.persona_id == "2"
        assert usability.worst.comment == "Usability note"
        assert summary.dimension_averages() == {"Clarity": 90, "Usability": 61}

    def test_statistics_order_independent(self, senior_and_geek):
        a = summarize({"1": report(60, {"X": 40}), "2": report(90, {"X": 80})}, senior_and_geek)
        b = summarize({"2": report(90, {"X": 80}), "1": report(60, {"X": 40})}, senior_and_geek)
        assert a.average_overall_score == b.average_overall_score
        assert a.dimension_stats[0].average == b.dimension_stats[0].average
        assert a.dimension_stats[0].min == b.dimension_stats[0].min

    def test_mismatched_labels_stay_separate(self, senior_and_geek):
        summary = summarize(
            {"1": report(70, {"Clarity": 80}), "2": report(70, {"clarity": 60})},
            senior_and_geek,
        )
        assert summary.dimensions == ["Clarity", "clarity"]
        assert [s.count for s in summary.dimension_stats] == [1, 1]

    def test_strengths_and_weaknesses(self):
        personas = [Persona(id="1", name="A")]
        scores = {"A": 90, "B": 40, "C": 70, "D": 70, "E": 20}
        summary = summarize({"1": report(60, scores)}, personas)
        assert [s.dimension for s in summary.strengths] == ["A", "C", "D"]
        assert [s.dimension for s in summary.weaknesses] == ["E", "B", "D"]

    def test_fewer_than_three_dimensions(self):
        summary = summarize({"1": report(60, {"A": 90, "B": 40})}, [Persona(id="1", name="A")])
        assert len(summary.strengths) == 2
        assert len(summary.weaknesses) == 2


class TestIssues:
    """Tests for issue flattening, hotspots and severities."""

    @pytest.fixture
    def three(self):
        return [Persona(id="a", name="A"), Persona(id="b", name="B"), Persona(id="c", name="C")]

    def test_hotspot_needs_two_personas(self, three):
        summary = summarize(
            {
                "a": report(70, issues=[("High", "Checkout button")]),
                "b": report(70, issues=[("Low", "Checkout button")]),
                "c": report(70, issues=[("Medium", "Footer"), ("Low", "Footer")]),
            },
            three,
        )
        assert [h.location for h in summary.issue_hotspots] == ["Checkout button"]
        hotspot = summary.issue_hotspots[0]
        assert hotspot.persona_count == 2
        assert hotspot.persona_names == ["A", "B"]
        assert len(hotspot.issues) == 2

    def test_hotspots_sorted_by_persona_count(self, three):
        summary = summarize(
            {
                "a": report(70, issues=[("Low", "Menu"), ("Low", "Search")]),
                "b": report(70, issues=[("Low", "Menu"), ("Low", "Search")]),
                "c": report(70, issues=[("Low", "Search")]),
            },
            three,
        )
        assert [(h.location, h.persona_count) for h in summary.issue_hotspots] == [("Search", 3), ("Menu", 2)]

    def test_flattened_issues_tagged(self, three):
        summary = summarize({"b": report(70, issues=[("High", "Header")])}, three)
        assert summary.total_issues == 1
        assert summary.issues[0].persona_name == "B"
        assert summary.issues[0].location == "Header"

    def test_histogram_seeded_by_order(self, three):
        summary = summarize(
            {"a": report(70, issues=[("High", "x"), ("High", "y"), ("Low", "z")])},
            three,
            severity_order=UES_RUBRIC.severity_levels,
        )
        assert summary.severity_histogram == {"Critical": 0, "High": 2, "Medium": 0, "Low": 1}
        assert [(g.severity, g.count) for g in summary.severity_groups] == [("High", 2), ("Low", 1)]

    def test_unknown_severity_kept(self, three):
        summary = summarize(
            {"a": report(70, issues=[("Blocker", "x"), ("Low", "y")])},
            three,
            severity_order=["High", "Low"],
        )
        assert list(summary.severity_histogram) == ["High", "Low", "Blocker"]
        assert summary.severity_histogram["Blocker"] == 1

    def test_histogram_without_order(self, three):
        summary = summarize({"a": report(70, issues=[("Level 2", "x"), ("Level 1", "y")])}, three)
        assert summary.severity_histogram == {"Level 2": 1, "Level 1": 1}

    def test_suggestions_flattened(self, three):
        summary = summarize(
            {"a": report(70, suggestions=["Bigger fonts"]), "c": report(70, suggestions=["Dark mode", "Undo"])},
            three,
        )
        assert summary.total_suggestions == 3
        assert [(s.persona_name, s.text) for s in summary.suggestions] == [
            ("A", "Bigger fonts"),
            ("C", "Dark mode"),
            ("C", "Undo"),
        ]


class TestHeatmap:
    """Tests for heatmap rows."""

    def test_rows_and_average(self, senior_and_geek):
        summary = summarize(
            {
                "1": report(60, {"Clarity": 50, "Usability": 70}),
                "2": report(90, {"Clarity": 91}),
            },
            senior_and_geek,
        )
        senior, geek, average = summary.heatmap_rows
        assert senior.cells == {"Clarity": 50, "Usability": 70}
        assert senior.overall == 60
        # Missing dimensions are absent, not zero
        assert geek.cells == {"Clarity": 91}
        assert "Usability" not in geek.cells
        assert average.is_average
        assert average.cells == {"Clarity": 71, "Usability": 70}
        assert average.overall == 75

    def test_to_dict(self, senior_and_geek):
        data = summarize({"1": report(60, {"Clarity": 50})}, senior_and_geek).to_dict()
        assert data["average_overall_score"] == 60
        assert data["heatmap_rows"][-1]["is_average"] is True
        assert data["dimension_stats"][0]["best"]["persona_name"] == "Senior"
