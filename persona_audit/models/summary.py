"""
Cross-persona summary models.

Produced by the aggregation engine; every field is derived from a
settled run and recomputed from scratch on each call.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ScoreAttribution:
    """Which persona gave a score, and what they said."""
    persona_id: str
    persona_name: str
    score: int
    comment: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "persona_id": self.persona_id,
            "persona_name": self.persona_name,
            "score": self.score,
            "comment": self.comment,
        }


@dataclass(frozen=True)
class DimensionStatistic:
    """Rollup of one dimension label across personas."""
    dimension: str
    average: int
    min: int
    max: int
    range: int
    best: ScoreAttribution
    worst: ScoreAttribution
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimension": self.dimension,
            "average": self.average,
            "min": self.min,
            "max": self.max,
            "range": self.range,
            "best": self.best.to_dict(),
            "worst": self.worst.to_dict(),
            "count": self.count,
        }


@dataclass(frozen=True)
class FlattenedIssue:
    """An issue tagged with the persona that reported it."""
    persona_id: str
    persona_name: str
    severity: str
    location: str
    description: str
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "persona_id": self.persona_id,
            "persona_name": self.persona_name,
            "severity": self.severity,
            "location": self.location,
            "description": self.description,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class IssueHotspot:
    """A location independently cited by two or more personas."""
    location: str
    persona_count: int
    persona_names: List[str]
    issues: List[FlattenedIssue]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "persona_count": self.persona_count,
            "persona_names": list(self.persona_names),
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass(frozen=True)
class SeverityGroup:
    """Issues sharing one severity level."""
    severity: str
    issues: List[FlattenedIssue]

    @property
    def count(self) -> int:
        return len(self.issues)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity,
            "count": self.count,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass(frozen=True)
class PersonaSuggestion:
    """An optimization suggestion and who made it."""
    text: str
    persona_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "persona_name": self.persona_name}


@dataclass(frozen=True)
class HeatmapRow:
    """
    One heatmap row.

    ``cells`` holds only dimensions the persona actually scored; a
    missing dimension is absent, never zero.
    """
    label: str
    cells: Dict[str, int]
    overall: int
    persona_id: Optional[str] = None
    is_average: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "persona_id": self.persona_id,
            "cells": dict(self.cells),
            "overall": self.overall,
            "is_average": self.is_average,
        }


@dataclass
class AggregateSummary:
    """Cross-persona summary of a settled run."""
    persona_count: int = 0
    average_overall_score: int = 0
    score_level: str = ""
    dimensions: List[str] = field(default_factory=list)
    dimension_stats: List[DimensionStatistic] = field(default_factory=list)
    strengths: List[DimensionStatistic] = field(default_factory=list)
    weaknesses: List[DimensionStatistic] = field(default_factory=list)
    issues: List[FlattenedIssue] = field(default_factory=list)
    issue_hotspots: List[IssueHotspot] = field(default_factory=list)
    severity_histogram: Dict[str, int] = field(default_factory=dict)
    severity_groups: List[SeverityGroup] = field(default_factory=list)
    suggestions: List[PersonaSuggestion] = field(default_factory=list)
    heatmap_rows: List[HeatmapRow] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    @property
    def total_suggestions(self) -> int:
        return len(self.suggestions)

    def dimension_averages(self) -> Dict[str, int]:
        """Average per dimension label."""
        return {stat.dimension: stat.average for stat in self.dimension_stats}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "persona_count": self.persona_count,
            "average_overall_score": self.average_overall_score,
            "score_level": self.score_level,
            "dimensions": list(self.dimensions),
            "dimension_stats": [s.to_dict() for s in self.dimension_stats],
            "strengths": [s.to_dict() for s in self.strengths],
            "weaknesses": [s.to_dict() for s in self.weaknesses],
            "issues": [i.to_dict() for i in self.issues],
            "total_issues": self.total_issues,
            "issue_hotspots": [h.to_dict() for h in self.issue_hotspots],
            "severity_histogram": dict(self.severity_histogram),
            "severity_groups": [g.to_dict() for g in self.severity_groups],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "total_suggestions": self.total_suggestions,
            "heatmap_rows": [r.to_dict() for r in self.heatmap_rows],
        }
