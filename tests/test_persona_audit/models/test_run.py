"""Tests for persona_audit.models.run module."""

import pytest
from persona_audit.core.exceptions import PartialRunError
from persona_audit.models import (
    EvaluationModel,
    FailurePolicy,
    ImageReference,
    PersonaFailure,
    RunNotification,
    RunOutcome,
    RunPhase,
    RunResult,
)

from conftest import make_report


def _result(**kwargs):
    defaults = dict(
        selected_persona_ids=("p1", "p2"),
        evaluation_model=EvaluationModel.ETS,
        policy=FailurePolicy.BEST_EFFORT,
    )
    defaults.update(kwargs)
    return RunResult(**defaults)


class TestRunResult:
    """Tests for RunResult invariants and outcome."""

    def test_success(self):
        result = _result(reports={"p1": make_report(), "p2": make_report()})
        assert result.outcome is RunOutcome.SUCCESS
        assert not result.is_partial
        assert result.succeeded_persona_ids == ["p1", "p2"]

    def test_partial(self):
        failure = PersonaFailure("p2", "Design Lead", RunPhase.ANALYSIS, "BACKEND_TIMEOUT", "timed out")
        result = _result(reports={"p1": make_report()}, failures={"p2": failure})
        assert result.outcome is RunOutcome.PARTIAL
        assert result.to_dict()["failures"]["p2"]["phase"] == "analysis"

    def test_reports_must_be_selected(self):
        with pytest.raises(ValueError):
            _result(reports={"p9": make_report()})

    def test_images_must_have_reports(self):
        with pytest.raises(ValueError):
            _result(
                reports={"p1": make_report()},
                optimized_images={"p2": ImageReference(data=b"x")},
            )

    def test_to_dict(self):
        result = _result(
            reports={"p1": make_report(overall=64)},
            optimized_images={"p1": ImageReference(data=b"img")},
            generation_requested=True,
        )
        data = result.to_dict()
        assert data["outcome"] == "partial"
        assert data["reports"]["p1"]["overallScore"] == 64
        assert data["optimized_images"]["p1"] == {"mime_type": "image/png", "size": 3}


class TestRunNotification:
    """Tests for RunNotification."""

    def test_with_result(self):
        result = _result(reports={"p1": make_report(), "p2": make_report()})
        data = RunNotification(run_id="r1", outcome=RunOutcome.SUCCESS, result=result).to_dict()
        assert data["outcome"] == "success"
        assert data["error"] is None

    def test_with_audit_error(self):
        error = PartialRunError("All failed", failures={"p1": "x"})
        data = RunNotification(run_id="r1", outcome=RunOutcome.FAILURE, error=error).to_dict()
        assert data["error"]["error_code"] == "PARTIAL_RUN_ERROR"
        assert data["result"] is None

    def test_with_plain_error(self):
        data = RunNotification(run_id="r1", outcome=RunOutcome.FAILURE, error=RuntimeError("boom")).to_dict()
        assert data["error"]["message"] == "boom"
