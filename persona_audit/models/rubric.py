"""
Evaluation rubric definitions.

Each evaluation model is a closed variant carrying its own
dimension labels and severity vocabulary. Only request shaping and
response validation consult these; aggregation groups by whatever
labels the reports actually contain.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .enums import EvaluationModel


@dataclass(frozen=True)
class RubricDimension:
    """One scored dimension and the criteria the backend applies."""
    label: str
    criteria: str


@dataclass(frozen=True)
class RubricDefinition:
    """Dimension set and severity vocabulary for one evaluation model."""
    model: EvaluationModel
    dimensions: Tuple[RubricDimension, ...]
    severity_levels: Tuple[str, ...]  # Most severe first
    critical_severities: Tuple[str, ...]

    @property
    def dimension_labels(self) -> Tuple[str, ...]:
        return tuple(d.label for d in self.dimensions)

    @property
    def dimension_count(self) -> int:
        return len(self.dimensions)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "model": self.model.value,
            "dimensions": [{"label": d.label, "criteria": d.criteria} for d in self.dimensions],
            "severity_levels": list(self.severity_levels),
            "critical_severities": list(self.critical_severities),
        }


UES_RUBRIC = RubricDefinition(
    model=EvaluationModel.UES,
    dimensions=(
        RubricDimension("Usability", "Learnability, memorability, efficiency of use."),
        RubricDimension("Consistency", "Visual, interaction and copy consistency."),
        RubricDimension("Clarity", "Information hierarchy and readability."),
        RubricDimension("Aesthetics", "Visual appeal and minimalism."),
        RubricDimension("Efficiency", "Task completion speed and shortcuts."),
    ),
    severity_levels=("Critical", "High", "Medium", "Low"),
    critical_severities=("Critical", "High"),
)

ETS_RUBRIC = RubricDefinition(
    model=EvaluationModel.ETS,
    dimensions=(
        RubricDimension(
            "Function Flow",
            "Closed-loop flows without redundancy; prominent entry points; "
            "traceable, logical steps; hints at key steps and less repeated input.",
        ),
        RubricDimension(
            "Information Cognition",
            "Accurate and complete content; unambiguous copy; "
            "information consistent across pages and channels.",
        ),
        RubricDimension(
            "Interaction Design",
            "Immediate, visible feedback; clear navigation; shortcuts that save steps; "
            "error prevention and consistent operation habits.",
        ),
        RubricDimension(
            "System Performance",
            "Stability and compatibility; smooth, responsive interaction.",
        ),
        RubricDimension(
            "Information Safety",
            "Privacy and transaction protection; risk warnings and remedies.",
        ),
        RubricDimension(
            "Visual Design",
            "Uncluttered layout; unified icon and color style; pleasant visuals.",
        ),
        RubricDimension(
            "Intelligence",
            "User insight and recommendations; accurate command recognition; "
            "emotional design.",
        ),
        RubricDimension(
            "Operation Service",
            "Timely content updates; professional support; perceived value.",
        ),
    ),
    severity_levels=("Level 1", "Level 2", "Level 3"),
    critical_severities=("Level 1", "Level 2"),
)

_RUBRICS: Dict[EvaluationModel, RubricDefinition] = {
    EvaluationModel.UES: UES_RUBRIC,
    EvaluationModel.ETS: ETS_RUBRIC,
}


def get_rubric(model: EvaluationModel) -> RubricDefinition:
    """Return the rubric for an evaluation model."""
    return _RUBRICS[EvaluationModel(model)]
