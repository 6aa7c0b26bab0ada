"""
Evaluation report schema.

Reports are produced by the backend as camelCase JSON and validated
here. A response that parses but violates this schema is treated the
same as a transport failure by the evaluation client.
"""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .enums import EvaluationModel


class _ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class DimensionScore(_ReportModel):
    """Score for one rubric dimension."""
    dimension: str = Field(..., description="Dimension label")
    score: int = Field(..., strict=True, ge=0, le=100, description="Score 0-100")
    comment: str = Field(..., description="Short justification")


class Issue(_ReportModel):
    """A concrete problem found in the artifact."""
    severity: str = Field(..., description="Severity level from the rubric vocabulary")
    location: str = Field(..., description="Where in the artifact")
    description: str
    recommendation: str


class EvaluationReport(_ReportModel):
    """Per-persona experience audit."""
    overall_score: int = Field(..., alias="overallScore", strict=True, ge=0, le=100)
    dimension_scores: List[DimensionScore] = Field(..., alias="dimensionScores")
    executive_summary: str = Field(..., alias="executiveSummary")
    persona_perspective: str = Field(..., alias="personaPerspective")
    issues: List[Issue] = Field(...)
    optimization_suggestions: List[str] = Field(..., alias="optimizationSuggestions")
    model_type: Optional[EvaluationModel] = Field(default=None, alias="modelType")

    def stamped(self, model: EvaluationModel) -> "EvaluationReport":
        """Copy tagged with the evaluation model used to request it."""
        return self.model_copy(update={"model_type": EvaluationModel(model)})

    def critical_issues(self, severities: Sequence[str]) -> List[Issue]:
        """Issues whose severity is in ``severities``."""
        return [issue for issue in self.issues if issue.severity in severities]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to camelCase dictionary."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvaluationReport":
        """
        Validate a backend payload.

        Raises:
            pydantic.ValidationError: On any schema violation.
        """
        return cls.model_validate(data)
