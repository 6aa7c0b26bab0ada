"""
Pytest Configuration and Fixtures
Shared personas, artifacts, reports and backend doubles.
"""

import io
import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from persona_audit.core.config import BackendConfig, ExportConfig
from persona_audit.models import (
    EvaluationModel,
    EvaluationReport,
    FlowStep,
    ImageArtifact,
    ImageReference,
    MediaReference,
    Persona,
    PersonaAttributes,
    StepSequenceArtifact,
    UserRole,
    VideoArtifact,
    get_rubric,
)
from persona_audit.services.evaluation_client import EvaluationClient


def png_bytes(size=(8, 6), color=(30, 120, 200)) -> bytes:
    """Encode a solid-color PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_report_data(
    model: EvaluationModel = EvaluationModel.ETS,
    overall: int = 80,
    scores: Optional[List[int]] = None,
    issues: Optional[List[Dict[str, str]]] = None,
    suggestions: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Backend-shaped (camelCase) report payload for a rubric."""
    rubric = get_rubric(model)
    scores = scores or [overall] * rubric.dimension_count
    return {
        "overallScore": overall,
        "dimensionScores": [
            {"dimension": label, "score": score, "comment": f"{label} comment"}
            for label, score in zip(rubric.dimension_labels, scores)
        ],
        "executiveSummary": "Solid layout with a few rough edges.",
        "personaPerspective": "I can find what I need, mostly.",
        "issues": issues if issues is not None else [
            {
                "severity": rubric.severity_levels[0],
                "location": "Checkout button",
                "description": "Button too small",
                "recommendation": "Increase tap target",
            },
        ],
        "optimizationSuggestions": suggestions if suggestions is not None else [
            "Simplify navigation",
        ],
    }


def make_report(**kwargs) -> EvaluationReport:
    return EvaluationReport.from_dict(make_report_data(**kwargs))


def gemini_text_response(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Gemini generateContent body carrying JSON text."""
    return {"candidates": [{"content": {"parts": [{"text": json.dumps(payload)}]}}]}


@pytest.fixture
def png():
    return png_bytes()


@pytest.fixture
def image_artifact(png):
    return ImageArtifact(image=ImageReference(data=png))


@pytest.fixture
def step_artifact(png):
    return StepSequenceArtifact(steps=[
        FlowStep(image=ImageReference(data=png), description="Open the app"),
        FlowStep(image=ImageReference(data=png), description=""),
    ])


@pytest.fixture
def video_artifact():
    return VideoArtifact(video=MediaReference(data=b"\x00\x00\x00\x18ftypmp42", mime_type="video/mp4"))


@pytest.fixture
def personas():
    return [
        Persona(
            id="p1",
            name="Retired Teacher",
            role=UserRole.USER,
            attributes=PersonaAttributes(
                age="68",
                tech_savviness="Low, uses large fonts",
                goals="Pay bills without help",
            ),
        ),
        Persona(
            id="p2",
            name="Design Lead",
            role=UserRole.EXPERT,
            attributes=PersonaAttributes(age="35", tech_savviness="High"),
        ),
        Persona(
            id="p3",
            name="Student",
            attributes=PersonaAttributes(age="20", device_habits="Phone only"),
        ),
    ]


@pytest.fixture
def backend_config():
    return BackendConfig(api_key="test-key", max_retries=2, retry_delay_seconds=0)


@pytest.fixture
def export_config():
    return ExportConfig(padding=4, pixel_ratio=1.0)


@pytest.fixture
def mock_client():
    """EvaluationClient double with analyze/regenerate as AsyncMocks."""
    client = MagicMock(spec=EvaluationClient)
    client.analyze = AsyncMock(side_effect=lambda artifact, persona, model, config: make_report(model=model))
    client.regenerate = AsyncMock(return_value=ImageReference(data=b"redrawn"))
    return client
