"""
Shared enums for personas, artifacts and run state.
"""

from enum import Enum


class UserRole(str, Enum):
    """Evaluator role tag carried by a persona."""
    USER = "USER"        # Evaluates usability
    EXPERT = "EXPERT"    # Evaluates consistency


class EvaluationModel(str, Enum):
    """Rubric the backend scores against."""
    UES = "UES"  # 5 dimensions
    ETS = "ETS"  # 8 dimensions


class ApiProvider(str, Enum):
    """Backend provider."""
    GOOGLE = "google"
    OPENROUTER = "openrouter"


class ArtifactKind(str, Enum):
    """Tag of the artifact variant under evaluation."""
    IMAGE = "image"
    STEP_SEQUENCE = "step_sequence"
    VIDEO = "video"


class FailurePolicy(str, Enum):
    """Analysis-phase failure policy, fixed per deployment."""
    FAIL_FAST = "fail_fast"        # First failure aborts the run
    BEST_EFFORT = "best_effort"    # Keep survivors, fail only when none


class RunState(str, Enum):
    """Orchestrator lifecycle."""
    IDLE = "idle"
    RUNNING_ANALYSIS = "running_analysis"
    RUNNING_GENERATION = "running_generation"
    SETTLED = "settled"


class RunOutcome(str, Enum):
    """How a settled run ended."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"  # Raised to the caller; only listeners see this value


class RunPhase(str, Enum):
    """Fan-out phase a persona failure belongs to."""
    ANALYSIS = "analysis"
    GENERATION = "generation"
