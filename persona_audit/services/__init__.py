"""
Persona audit services.

- EvaluationClient: backend calls for analysis and redraws
- EvaluationOrchestrator: two-phase multi-persona fan-out
- summarize: cross-persona aggregation
- ReportExporter: PNG and ZIP export
"""

from persona_audit.services.evaluation_client import (
    EvaluationClient,
    HttpEvaluationClient,
    GeminiAdapter,
    OpenRouterAdapter,
    create_evaluation_client,
    parse_report,
)
from persona_audit.services.orchestrator_service import EvaluationOrchestrator
from persona_audit.services.aggregation_service import summarize, score_level
from persona_audit.services.export_service import (
    RenderSurface,
    ImageSurface,
    ReportExporter,
    ExportArchive,
    report_filename,
)

__all__ = [
    "EvaluationClient",
    "HttpEvaluationClient",
    "GeminiAdapter",
    "OpenRouterAdapter",
    "create_evaluation_client",
    "parse_report",
    "EvaluationOrchestrator",
    "summarize",
    "score_level",
    "RenderSurface",
    "ImageSurface",
    "ReportExporter",
    "ExportArchive",
    "report_filename",
]
