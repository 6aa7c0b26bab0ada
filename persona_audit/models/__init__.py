"""
Persona Audit Models Package

Shared data classes and enums for personas, artifacts, reports,
run results and cross-persona summaries.
"""

# Enums
from .enums import (
    UserRole,
    EvaluationModel,
    ApiProvider,
    ArtifactKind,
    FailurePolicy,
    RunState,
    RunOutcome,
    RunPhase,
)

# Personas
from .persona import (
    PersonaAttributes,
    Persona,
)

# Artifacts
from .artifact import (
    MediaReference,
    ImageReference,
    FlowStep,
    ImageArtifact,
    StepSequenceArtifact,
    VideoArtifact,
    Artifact,
)

# Rubrics
from .rubric import (
    RubricDimension,
    RubricDefinition,
    UES_RUBRIC,
    ETS_RUBRIC,
    get_rubric,
)

# Reports
from .report import (
    DimensionScore,
    Issue,
    EvaluationReport,
)

# Runs
from .run import (
    PersonaFailure,
    RunResult,
    RunNotification,
)

# Summary
from .summary import (
    ScoreAttribution,
    DimensionStatistic,
    FlattenedIssue,
    IssueHotspot,
    SeverityGroup,
    PersonaSuggestion,
    HeatmapRow,
    AggregateSummary,
)

__all__ = [
    # Enums
    "UserRole",
    "EvaluationModel",
    "ApiProvider",
    "ArtifactKind",
    "FailurePolicy",
    "RunState",
    "RunOutcome",
    "RunPhase",
    # Personas
    "PersonaAttributes",
    "Persona",
    # Artifacts
    "MediaReference",
    "ImageReference",
    "FlowStep",
    "ImageArtifact",
    "StepSequenceArtifact",
    "VideoArtifact",
    "Artifact",
    # Rubrics
    "RubricDimension",
    "RubricDefinition",
    "UES_RUBRIC",
    "ETS_RUBRIC",
    "get_rubric",
    # Reports
    "DimensionScore",
    "Issue",
    "EvaluationReport",
    # Runs
    "PersonaFailure",
    "RunResult",
    "RunNotification",
    # Summary
    "ScoreAttribution",
    "DimensionStatistic",
    "FlattenedIssue",
    "IssueHotspot",
    "SeverityGroup",
    "PersonaSuggestion",
    "HeatmapRow",
    "AggregateSummary",
]
