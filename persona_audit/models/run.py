"""
Run result models.

A settled run maps persona ids to reports and optimized images.
Key sets nest: optimized images within reports within the selected
personas.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from persona_audit.core.exceptions import AuditError

from .artifact import ImageReference
from .enums import EvaluationModel, FailurePolicy, RunOutcome, RunPhase
from .report import EvaluationReport


@dataclass(frozen=True)
class PersonaFailure:
    """Why one persona's call failed in a phase."""
    persona_id: str
    persona_name: str
    phase: RunPhase
    error_code: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "persona_id": self.persona_id,
            "persona_name": self.persona_name,
            "phase": self.phase.value,
            "error_code": self.error_code,
            "message": self.message,
        }


@dataclass
class RunResult:
    """Settled output of one orchestrator run."""
    selected_persona_ids: Tuple[str, ...]
    evaluation_model: EvaluationModel
    policy: FailurePolicy
    reports: Dict[str, EvaluationReport] = field(default_factory=dict)
    optimized_images: Dict[str, ImageReference] = field(default_factory=dict)
    failures: Dict[str, PersonaFailure] = field(default_factory=dict)
    generation_failures: Dict[str, PersonaFailure] = field(default_factory=dict)
    generation_requested: bool = False
    generation_skipped_reason: Optional[str] = None

    def __post_init__(self) -> None:
        self.selected_persona_ids = tuple(self.selected_persona_ids)
        selected = set(self.selected_persona_ids)
        if not set(self.reports) <= selected:
            raise ValueError("Report keys must be a subset of the selected personas")
        if not set(self.optimized_images) <= set(self.reports):
            raise ValueError("Optimized image keys must be a subset of the report keys")

    @property
    def outcome(self) -> RunOutcome:
        """Partial when any selected persona has no report."""
        if len(self.reports) == len(self.selected_persona_ids):
            return RunOutcome.SUCCESS
        return RunOutcome.PARTIAL

    @property
    def is_partial(self) -> bool:
        return self.outcome is RunOutcome.PARTIAL

    @property
    def succeeded_persona_ids(self) -> List[str]:
        return list(self.reports)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "selected_persona_ids": list(self.selected_persona_ids),
            "evaluation_model": self.evaluation_model.value,
            "policy": self.policy.value,
            "outcome": self.outcome.value,
            "reports": {pid: report.to_dict() for pid, report in self.reports.items()},
            "optimized_images": {
                pid: image.to_dict() for pid, image in self.optimized_images.items()
            },
            "failures": {pid: f.to_dict() for pid, f in self.failures.items()},
            "generation_failures": {
                pid: f.to_dict() for pid, f in self.generation_failures.items()
            },
            "generation_requested": self.generation_requested,
            "generation_skipped_reason": self.generation_skipped_reason,
        }


@dataclass(frozen=True)
class RunNotification:
    """Sent to a run listener exactly once, when the run settles."""
    run_id: str
    outcome: RunOutcome
    result: Optional[RunResult] = None
    error: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        error = None
        if isinstance(self.error, AuditError):
            error = self.error.to_dict()
        elif self.error is not None:
            error = {"error": True, "message": str(self.error)}
        return {
            "run_id": self.run_id,
            "outcome": self.outcome.value,
            "result": self.result.to_dict() if self.result else None,
            "error": error,
        }
