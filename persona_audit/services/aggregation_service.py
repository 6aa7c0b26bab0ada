"""
Aggregation Engine

Pure cross-persona rollup of a settled run: average score, per-dimension
statistics, strengths and weaknesses, issue hotspots, severity
histogram, flattened suggestions and heatmap rows.

Every call recomputes from scratch; nothing is cached between calls.
"""

import math
from typing import Dict, List, Mapping, Optional, Sequence

from persona_audit.core.logger import get_logger
from persona_audit.models.persona import Persona
from persona_audit.models.report import EvaluationReport
from persona_audit.models.summary import (
    AggregateSummary,
    DimensionStatistic,
    FlattenedIssue,
    HeatmapRow,
    IssueHotspot,
    PersonaSuggestion,
    ScoreAttribution,
    SeverityGroup,
)

logger = get_logger(__name__)

TOP_DIMENSIONS = 3
AVERAGE_ROW_LABEL = "Average"

# (threshold, label), checked top down
SCORE_LEVELS = (
    (85, "Excellent"),
    (70, "Good"),
    (55, "Fair"),
)
LOWEST_SCORE_LEVEL = "Needs Improvement"


def _round(value: float) -> int:
    """Round half up, so 74.5 becomes 75 and not 74."""
    return int(math.floor(value + 0.5))


def _mean(values: Sequence[int]) -> int:
    if not values:
        return 0
    return _round(sum(values) / len(values))


def score_level(score: float) -> str:
    """Qualitative label for a 0-100 score."""
    for threshold, label in SCORE_LEVELS:
        if score >= threshold:
            return label
    return LOWEST_SCORE_LEVEL


def _join(
    reports: Mapping[str, EvaluationReport],
    personas: Sequence[Persona],
) -> List[tuple]:
    """Pair reports with their personas in report order."""
    by_id = {p.id: p for p in personas}
    entries = []
    for persona_id, report in reports.items():
        persona = by_id.get(persona_id)
        if persona is None:
            logger.debug("aggregation.report_without_persona", persona_id=persona_id)
            continue
        entries.append((persona, report))
    return entries


def _dimension_stats(entries: List[tuple]) -> List[DimensionStatistic]:
    groups: Dict[str, List[ScoreAttribution]] = {}
    for persona, report in entries:
        for score in report.dimension_scores:
            groups.setdefault(score.dimension, []).append(
                ScoreAttribution(
                    persona_id=persona.id,
                    persona_name=persona.name,
                    score=score.score,
                    comment=score.comment,
                )
            )

    stats = []
    for dimension, attributions in groups.items():
        scores = [a.score for a in attributions]
        # max/min return the first of equal elements
        best = max(attributions, key=lambda a: a.score)
        worst = min(attributions, key=lambda a: a.score)
        stats.append(
            DimensionStatistic(
                dimension=dimension,
                average=_mean(scores),
                min=worst.score,
                max=best.score,
                range=best.score - worst.score,
                best=best,
                worst=worst,
                count=len(scores),
            )
        )
    return stats


def _hotspots(issues: List[FlattenedIssue]) -> List[IssueHotspot]:
    by_location: Dict[str, List[FlattenedIssue]] = {}
    for issue in issues:
        by_location.setdefault(issue.location, []).append(issue)

    hotspots = []
    for location, located in by_location.items():
        names: List[str] = []
        seen = set()
        for issue in located:
            if issue.persona_id not in seen:
                seen.add(issue.persona_id)
                names.append(issue.persona_name)
        if len(names) >= 2:
            hotspots.append(
                IssueHotspot(
                    location=location,
                    persona_count=len(names),
                    persona_names=names,
                    issues=located,
                )
            )
    hotspots.sort(key=lambda h: h.persona_count, reverse=True)
    return hotspots


def _severity_order(
    issues: List[FlattenedIssue],
    severity_order: Optional[Sequence[str]],
) -> List[str]:
    order = list(dict.fromkeys(severity_order or ()))
    for issue in issues:
        if issue.severity not in order:
            order.append(issue.severity)
    return order


def _heatmap(
    entries: List[tuple],
    dimensions: List[str],
    stats: List[DimensionStatistic],
    average_overall: int,
) -> List[HeatmapRow]:
    rows = []
    for persona, report in entries:
        scored = {s.dimension: s.score for s in report.dimension_scores}
        rows.append(
            HeatmapRow(
                label=persona.name,
                persona_id=persona.id,
                cells={d: scored[d] for d in dimensions if d in scored},
                overall=report.overall_score,
            )
        )
    if rows:
        rows.append(
            HeatmapRow(
                label=AVERAGE_ROW_LABEL,
                cells={stat.dimension: stat.average for stat in stats},
                overall=average_overall,
                is_average=True,
            )
        )
    return rows


def summarize(
    reports: Mapping[str, EvaluationReport],
    personas: Sequence[Persona],
    severity_order: Optional[Sequence[str]] = None,
) -> AggregateSummary:
    """
    Summarize reports across personas.

    Args:
        reports: Reports keyed by persona id, in display order
        personas: Personas the reports belong to; reports without a
            matching persona are left out
        severity_order: Severity labels to list first, most severe first.
            Seeds the histogram with zero counts.

    Returns:
        AggregateSummary. Empty input gives an empty summary with a
        0 average.
    """
    entries = _join(reports, personas)

    average_overall = _mean([report.overall_score for _, report in entries])
    stats = _dimension_stats(entries)
    dimensions = [stat.dimension for stat in stats]

    # sorted() is stable; equal averages keep first-encountered order
    ranked = sorted(stats, key=lambda s: s.average, reverse=True)
    strengths = ranked[:TOP_DIMENSIONS]
    weaknesses = list(reversed(ranked))[:TOP_DIMENSIONS]

    issues = [
        FlattenedIssue(
            persona_id=persona.id,
            persona_name=persona.name,
            severity=issue.severity,
            location=issue.location,
            description=issue.description,
            recommendation=issue.recommendation,
        )
        for persona, report in entries
        for issue in report.issues
    ]

    order = _severity_order(issues, severity_order)
    histogram = {severity: 0 for severity in order}
    grouped: Dict[str, List[FlattenedIssue]] = {severity: [] for severity in order}
    for issue in issues:
        histogram[issue.severity] += 1
        grouped[issue.severity].append(issue)
    severity_groups = [
        SeverityGroup(severity=severity, issues=grouped[severity])
        for severity in order
        if grouped[severity]
    ]

    suggestions = [
        PersonaSuggestion(text=text, persona_name=persona.name)
        for persona, report in entries
        for text in report.optimization_suggestions
    ]

    summary = AggregateSummary(
        persona_count=len(entries),
        average_overall_score=average_overall,
        score_level=score_level(average_overall),
        dimensions=dimensions,
        dimension_stats=stats,
        strengths=strengths,
        weaknesses=weaknesses,
        issues=issues,
        issue_hotspots=_hotspots(issues),
        severity_histogram=histogram,
        severity_groups=severity_groups,
        suggestions=suggestions,
        heatmap_rows=_heatmap(entries, dimensions, stats, average_overall),
    )
    logger.debug(
        "aggregation.summarized",
        personas=summary.persona_count,
        dimensions=len(dimensions),
        issues=summary.total_issues,
        hotspots=len(summary.issue_hotspots),
    )
    return summary
