"""
Prompt Builder

Shapes analysis and redraw requests from a persona, a rubric and an
artifact. Provider-neutral: output is an ordered list of text and
media parts that each client encodes for its own wire format.
"""

from typing import Any, Dict, List, Union

from persona_audit.models.artifact import Artifact, MediaReference
from persona_audit.models.enums import ArtifactKind
from persona_audit.models.persona import Persona
from persona_audit.models.report import EvaluationReport
from persona_audit.models.rubric import RubricDefinition

PromptPart = Union[str, MediaReference]

NO_CRITICAL_ISSUES = "No critical issues were found; focus on improving the overall experience."

_ARTIFACT_SUBJECTS = {
    ArtifactKind.IMAGE: "the uploaded UI screenshot",
    ArtifactKind.STEP_SEQUENCE: "the uploaded user flow (screenshots in step order)",
    ArtifactKind.VIDEO: "the uploaded screen recording",
}


def persona_profile(persona: Persona) -> str:
    """Render a persona as prompt context."""
    attrs = persona.attributes
    lines = [
        f"Role: {persona.role.value}",
        f"Name: {persona.name}",
        f"Age: {attrs.age}",
        f"Tech savviness: {attrs.tech_savviness}",
        f"Domain knowledge: {attrs.domain_knowledge}",
        f"Goals: {attrs.goals}",
        f"Environment: {attrs.environment}",
        f"Frustration tolerance: {attrs.frustration_tolerance}",
        f"Device habits: {attrs.device_habits}",
    ]
    if persona.description:
        lines.insert(2, f"Description: {persona.description}")
    return "\n".join(lines)


def rubric_criteria(rubric: RubricDefinition) -> str:
    """Numbered dimension list with criteria."""
    return "\n".join(
        f"{index}. {dimension.label}: {dimension.criteria}"
        for index, dimension in enumerate(rubric.dimensions, start=1)
    )


def build_analysis_prompt(
    persona: Persona,
    rubric: RubricDefinition,
    language: str,
    artifact_kind: ArtifactKind,
) -> str:
    """
    Build the audit instruction for one persona.

    Args:
        persona: Evaluator whose perspective the audit takes
        rubric: Evaluation model definition
        language: Language all report text must be written in
        artifact_kind: Which artifact variant is attached

    Returns:
        Prompt text
    """
    model = rubric.model.value
    labels = ", ".join(rubric.dimension_labels)
    severities = " / ".join(rubric.severity_levels)
    subject = _ARTIFACT_SUBJECTS[artifact_kind]

    return (
        "You are a world-class experience evaluation agent.\n"
        f"Audit {subject} strictly against the {model} evaluation model.\n\n"
        "The audit must be written from the perspective of this persona:\n"
        f"{persona_profile(persona)}\n\n"
        "Evaluation criteria:\n"
        f"{rubric_criteria(rubric)}\n\n"
        f"Return strict JSON. All text must be in {language}.\n"
        "- overallScore: integer 0-100.\n"
        f"- dimensionScores: exactly {rubric.dimension_count} entries, one per dimension "
        f"({labels}), each with an integer score 0-100 and a short comment.\n"
        "- executiveSummary: qualitative summary of the experience.\n"
        "- personaPerspective: how this persona experiences the design, in first person.\n"
        f"- issues: concrete UI issues with severity ({severities}), location, description "
        "and recommendation. Do not invent issues if there are none.\n"
        "- optimizationSuggestions: strategic improvement suggestions. "
        "Leave empty if there are no good ones.\n"
    )


def build_regeneration_prompt(
    persona: Persona,
    report: EvaluationReport,
    rubric: RubricDefinition,
) -> str:
    """
    Build the redraw instruction targeting a persona's flagged issues.

    Only issues at the rubric's critical severities are listed.
    """
    critical = report.critical_issues(rubric.critical_severities)
    issue_lines = "\n".join(
        f"- Location: {issue.location}, Problem: {issue.description}, "
        f"Recommendation: {issue.recommendation}"
        for issue in critical
    ) or NO_CRITICAL_ISSUES
    suggestion_lines = "\n".join(f"- {s}" for s in report.optimization_suggestions)
    attrs = persona.attributes

    return (
        "You are a world-class UI/UX designer. Redesign and optimize this interface "
        f"for the user \"{persona.name}\", based on the original screenshot.\n\n"
        "The goal is to fix the specific problems found in the audit report.\n\n"
        "Persona:\n"
        f"- Age: {attrs.age}\n"
        f"- Vision / tech ability: {attrs.tech_savviness}\n"
        f"- Core goals: {attrs.goals}\n\n"
        "Fix these critical / high priority issues:\n"
        f"{issue_lines}\n\n"
        "Consider these optimization suggestions:\n"
        f"{suggestion_lines}\n\n"
        "Design requirements:\n"
        "1. Targeted fixes: enlarge buttons reported as too small, raise low contrast, "
        "tidy cluttered layouts.\n"
        "2. Keep the product's brand colors and functional logic; produce a fixed "
        "version of the same app, not a different one.\n"
        "3. High fidelity, modern, clean and professional.\n\n"
        "Output the optimized UI design image directly."
    )


def artifact_parts(artifact: Artifact) -> List[PromptPart]:
    """
    Media parts for an artifact, dispatching on its tag.

    Step sequences interleave each screenshot with its step caption.
    """
    if artifact.kind is ArtifactKind.IMAGE:
        return [artifact.image]
    if artifact.kind is ArtifactKind.STEP_SEQUENCE:
        parts: List[PromptPart] = []
        for index, step in enumerate(artifact.steps, start=1):
            parts.append(step.image)
            caption = step.description.strip() or "(no description)"
            parts.append(f"Step {index}: {caption}")
        return parts
    if artifact.kind is ArtifactKind.VIDEO:
        return [artifact.video]
    raise ValueError(f"Unsupported artifact kind: {artifact.kind}")


def analysis_response_schema(rubric: RubricDefinition) -> Dict[str, Any]:
    """JSON schema the backend is asked to follow for a report."""
    return {
        "type": "OBJECT",
        "properties": {
            "overallScore": {"type": "INTEGER", "description": "Overall score (0-100)"},
            "dimensionScores": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "dimension": {"type": "STRING"},
                        "score": {"type": "INTEGER"},
                        "comment": {"type": "STRING"},
                    },
                    "required": ["dimension", "score", "comment"],
                },
                "description": (
                    f"Scores for {rubric.dimension_count} dimensions: "
                    + ", ".join(rubric.dimension_labels)
                ),
            },
            "executiveSummary": {"type": "STRING"},
            "personaPerspective": {"type": "STRING"},
            "issues": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "severity": {"type": "STRING", "enum": list(rubric.severity_levels)},
                        "location": {"type": "STRING"},
                        "description": {"type": "STRING"},
                        "recommendation": {"type": "STRING"},
                    },
                    "required": ["severity", "location", "description", "recommendation"],
                },
            },
            "optimizationSuggestions": {"type": "ARRAY", "items": {"type": "STRING"}},
        },
        "required": [
            "overallScore",
            "dimensionScores",
            "executiveSummary",
            "personaPerspective",
            "issues",
            "optimizationSuggestions",
        ],
    }
