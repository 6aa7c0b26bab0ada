"""
Evaluation Orchestrator

Fans out one analysis call per persona, collects reports keyed by
persona, then optionally fans out one redraw per persona whose
analysis succeeded.

Lifecycle: idle -> running_analysis -> running_generation -> settled.

Failure policy for the analysis phase is fixed when the orchestrator
is constructed:
- fail_fast: any analysis failure aborts the run with one
  AnalysisAbortedError naming the first persona that failed;
  completed reports are discarded.
- best_effort: failures are recorded on the result and the run
  continues with the survivors; PartialRunError only when none
  survived.
Redraw failures are always per persona and never fail the run.
"""

import asyncio
import uuid
from typing import Callable, Dict, List, Optional, Sequence

from persona_audit.core.config import BackendConfig
from persona_audit.core.exceptions import (
    AnalysisAbortedError,
    AuditError,
    BackendError,
    PartialRunError,
    PreconditionError,
)
from persona_audit.core.logger import correlation_context, get_logger
from persona_audit.models.artifact import Artifact, ImageReference
from persona_audit.models.enums import (
    EvaluationModel,
    FailurePolicy,
    RunOutcome,
    RunPhase,
    RunState,
)
from persona_audit.models.persona import Persona
from persona_audit.models.report import EvaluationReport
from persona_audit.models.run import PersonaFailure, RunNotification, RunResult
from persona_audit.services.evaluation_client import EvaluationClient

logger = get_logger(__name__)

RunListener = Callable[[RunNotification], None]

_ACTIVE_STATES = (RunState.RUNNING_ANALYSIS, RunState.RUNNING_GENERATION)


def _failure(persona: Persona, phase: RunPhase, error: Exception) -> PersonaFailure:
    if isinstance(error, AuditError):
        error_code, message = error.error_code, error.message
    else:
        error_code, message = "UNEXPECTED_ERROR", str(error) or type(error).__name__
    return PersonaFailure(
        persona_id=persona.id,
        persona_name=persona.name,
        phase=phase,
        error_code=error_code,
        message=message,
    )


class EvaluationOrchestrator:
    """
    Multi-persona evaluation run coordinator.

    Calls within a phase are started together and awaited until every
    one has settled. Each per-persona task writes only its own slot,
    so the result maps need no locking.
    """

    def __init__(
        self,
        client: EvaluationClient,
        policy: FailurePolicy = FailurePolicy.BEST_EFFORT,
        listener: Optional[RunListener] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Evaluation client used for every backend call
            policy: Analysis failure policy for this deployment
            listener: Called once per run when it settles
        """
        self._client = client
        self._policy = FailurePolicy(policy)
        self._listener = listener
        self._state = RunState.IDLE

    @property
    def policy(self) -> FailurePolicy:
        return self._policy

    @property
    def state(self) -> RunState:
        return self._state

    def _transition(self, state: RunState) -> None:
        logger.info("orchestrator.state_changed", previous=self._state.value, state=state.value)
        self._state = state

    def _notify(self, notification: RunNotification) -> None:
        if self._listener is not None:
            self._listener(notification)

    def _check_preconditions(
        self,
        artifact: Optional[Artifact],
        personas: Sequence[Persona],
        evaluation_model: EvaluationModel,
    ) -> None:
        if self._state in _ACTIVE_STATES:
            raise PreconditionError(
                "A run is already in progress on this orchestrator",
                details={"state": self._state.value},
            )
        if artifact is None:
            raise PreconditionError("No artifact provided")
        if artifact.is_empty():
            raise PreconditionError(
                f"Artifact is empty ({artifact.kind.value})",
                details={"artifact_kind": artifact.kind.value},
            )
        if not personas:
            raise PreconditionError("At least one persona must be selected")
        ids = [p.id for p in personas]
        duplicates = sorted({pid for pid in ids if ids.count(pid) > 1})
        if duplicates:
            raise PreconditionError(
                "Persona ids must be unique",
                details={"duplicate_ids": duplicates},
            )
        try:
            EvaluationModel(evaluation_model)
        except ValueError as e:
            raise PreconditionError(
                f"Unknown evaluation model: {evaluation_model!r}"
            ) from e

    async def run_evaluation(
        self,
        artifact: Artifact,
        personas: Sequence[Persona],
        evaluation_model: EvaluationModel,
        config: BackendConfig,
        generate_images: bool = False,
    ) -> RunResult:
        """
        Run one evaluation over the selected personas.

        Args:
            artifact: Screenshot, flow or video under evaluation
            personas: Selected personas, in selection order
            evaluation_model: Rubric to evaluate against
            config: Backend configuration for every call in this run
            generate_images: Also redraw the artifact per persona

        Returns:
            Settled RunResult. Result maps follow selection order.

        Raises:
            PreconditionError: Invalid call shape; no backend call made.
            AnalysisAbortedError: fail_fast policy and any analysis failed.
            PartialRunError: best_effort policy and every analysis failed.
        """
        self._check_preconditions(artifact, personas, evaluation_model)
        evaluation_model = EvaluationModel(evaluation_model)
        run_id = uuid.uuid4().hex[:12]

        with correlation_context(run_id=run_id):
            logger.info(
                "orchestrator.run.started",
                personas=len(personas),
                artifact_kind=artifact.kind.value,
                evaluation_model=evaluation_model.value,
                policy=self._policy.value,
                generate_images=generate_images,
                backend=config.redacted(),
            )
            try:
                result = await self._run(
                    artifact, list(personas), evaluation_model, config, generate_images
                )
            except Exception as e:
                self._transition(RunState.SETTLED)
                logger.error("orchestrator.run.failed", error=str(e))
                self._notify(RunNotification(run_id=run_id, outcome=RunOutcome.FAILURE, error=e))
                raise

            self._transition(RunState.SETTLED)
            logger.info(
                "orchestrator.run.settled",
                outcome=result.outcome.value,
                reports=len(result.reports),
                optimized_images=len(result.optimized_images),
                failures=len(result.failures),
                generation_failures=len(result.generation_failures),
            )
            self._notify(RunNotification(run_id=run_id, outcome=result.outcome, result=result))
            return result

    async def _run(
        self,
        artifact: Artifact,
        personas: List[Persona],
        evaluation_model: EvaluationModel,
        config: BackendConfig,
        generate_images: bool,
    ) -> RunResult:
        # Phase A: analysis fan-out
        self._transition(RunState.RUNNING_ANALYSIS)
        reports, failures, failure_order = await self._analyze_all(
            artifact, personas, evaluation_model, config
        )

        if failures and self._policy is FailurePolicy.FAIL_FAST:
            first = failures[failure_order[0]]
            raise AnalysisAbortedError(
                f"{first.persona_name} analysis failed: {first.message}",
                persona_id=first.persona_id,
                persona_name=first.persona_name,
                failures={pid: f.message for pid, f in failures.items()},
            )
        if not reports:
            raise PartialRunError(
                f"Analysis failed for all {len(personas)} personas",
                failures={pid: f.message for pid, f in failures.items()},
            )

        result = RunResult(
            selected_persona_ids=tuple(p.id for p in personas),
            evaluation_model=evaluation_model,
            policy=self._policy,
            reports=reports,
            failures=failures,
            generation_requested=generate_images,
        )
        if not generate_images:
            return result

        # Phase B: redraw fan-out for personas with a report
        source = artifact.source_image()
        if source is None:
            result.generation_skipped_reason = (
                f"{artifact.kind.value} artifact has no source image to redraw"
            )
            logger.warning(
                "orchestrator.phase_b.skipped",
                reason=result.generation_skipped_reason,
            )
            return result

        self._transition(RunState.RUNNING_GENERATION)
        targets = [p for p in personas if p.id in reports]
        images, generation_failures = await self._regenerate_all(
            artifact, targets, reports, config
        )
        result.optimized_images = images
        result.generation_failures = generation_failures
        return result

    async def _analyze_all(
        self,
        artifact: Artifact,
        personas: List[Persona],
        evaluation_model: EvaluationModel,
        config: BackendConfig,
    ):
        slots: Dict[str, EvaluationReport] = {}
        failures: Dict[str, PersonaFailure] = {}
        failure_order: List[str] = []

        async def analyze_one(persona: Persona) -> None:
            with correlation_context(persona_id=persona.id):
                try:
                    report = await self._client.analyze(
                        artifact, persona, evaluation_model, config
                    )
                except BackendError as e:
                    failures[persona.id] = _failure(persona, RunPhase.ANALYSIS, e)
                    failure_order.append(persona.id)
                    logger.warning(
                        "orchestrator.phase_a.persona_failed",
                        persona_name=persona.name,
                        error_code=e.error_code,
                        error=e.message,
                    )
                    return
                slots[persona.id] = report
                logger.info(
                    "orchestrator.phase_a.persona_completed",
                    overall_score=report.overall_score,
                )

        logger.info("orchestrator.phase_a.started", personas=len(personas))
        outcomes = await asyncio.gather(
            *(analyze_one(p) for p in personas),
            return_exceptions=True,
        )
        # Only non-backend errors escape analyze_one; they are bugs, not failures
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        logger.info(
            "orchestrator.phase_a.settled",
            succeeded=len(slots),
            failed=len(failures),
        )
        reports = {p.id: slots[p.id] for p in personas if p.id in slots}
        ordered_failures = {p.id: failures[p.id] for p in personas if p.id in failures}
        return reports, ordered_failures, failure_order

    async def _regenerate_all(
        self,
        artifact: Artifact,
        personas: List[Persona],
        reports: Dict[str, EvaluationReport],
        config: BackendConfig,
    ):
        slots: Dict[str, ImageReference] = {}
        failures: Dict[str, PersonaFailure] = {}

        async def regenerate_one(persona: Persona) -> None:
            with correlation_context(persona_id=persona.id):
                try:
                    image = await self._client.regenerate(
                        artifact, persona, reports[persona.id], config
                    )
                except Exception as e:
                    failures[persona.id] = _failure(persona, RunPhase.GENERATION, e)
                    logger.warning(
                        "orchestrator.phase_b.persona_failed",
                        persona_name=persona.name,
                        error=str(e),
                        exc_info=not isinstance(e, BackendError),
                    )
                    return
                slots[persona.id] = image
                logger.info("orchestrator.phase_b.persona_completed", size=image.size)

        logger.info("orchestrator.phase_b.started", personas=len(personas))
        await asyncio.gather(*(regenerate_one(p) for p in personas))
        logger.info(
            "orchestrator.phase_b.settled",
            succeeded=len(slots),
            failed=len(failures),
        )
        images = {p.id: slots[p.id] for p in personas if p.id in slots}
        ordered_failures = {p.id: failures[p.id] for p in personas if p.id in failures}
        return images, ordered_failures
