"""
Evaluation Client

Typed interface to the external analysis/generation backend. Shapes
requests, retries transient failures, and validates responses. Any
response that parses but violates the report schema is a hard
failure, never coerced.

The backend configuration is passed into every call; one client can
serve runs against different providers side by side.
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

import httpx
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from persona_audit.core.config import BackendConfig
from persona_audit.core.exceptions import (
    BackendAuthError,
    BackendError,
    BackendResponseError,
    BackendTimeoutError,
    BackendUnavailableError,
    RateLimitError,
)
from persona_audit.core.logger import get_logger
from persona_audit.models.artifact import Artifact, ImageReference
from persona_audit.models.enums import ApiProvider, ArtifactKind, EvaluationModel
from persona_audit.models.persona import Persona
from persona_audit.models.report import EvaluationReport
from persona_audit.models.rubric import RubricDefinition, get_rubric
from persona_audit.services.prompt_builder import (
    PromptPart,
    analysis_response_schema,
    artifact_parts,
    build_analysis_prompt,
    build_regeneration_prompt,
)

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

# Longest honored Retry-After, in seconds
MAX_RETRY_AFTER = 60.0

RETRYABLE_ERRORS = (BackendTimeoutError, BackendUnavailableError, RateLimitError)

# Raised when a response body has the wrong shape
_SHAPE_ERRORS = (AttributeError, TypeError, KeyError, IndexError)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


@dataclass
class BackendRequest:
    """A provider-specific HTTP request."""
    url: str
    payload: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)


class EvaluationClient(ABC):
    """
    Contract the orchestrator depends on.

    Implementations raise BackendError (or a subclass) for every
    failure; they never return a partial report or image.
    """

    @abstractmethod
    async def analyze(
        self,
        artifact: Artifact,
        persona: Persona,
        evaluation_model: EvaluationModel,
        config: BackendConfig,
    ) -> EvaluationReport:
        """Audit the artifact from one persona's perspective."""

    @abstractmethod
    async def regenerate(
        self,
        artifact: Artifact,
        persona: Persona,
        report: EvaluationReport,
        config: BackendConfig,
    ) -> ImageReference:
        """Redraw the artifact to address the persona's flagged issues."""

    async def close(self) -> None:
        """Release resources."""

    async def __aenter__(self) -> "EvaluationClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


# =============================================================================
# PROVIDER ADAPTERS
# =============================================================================


class ProviderAdapter(ABC):
    """Wire format of one backend provider."""

    provider: ApiProvider
    supported_artifacts: FrozenSet[ArtifactKind] = frozenset(ArtifactKind)

    @abstractmethod
    def analysis_request(
        self,
        parts: List[PromptPart],
        prompt: str,
        rubric: RubricDefinition,
        config: BackendConfig,
    ) -> BackendRequest:
        """Build the analysis request."""

    @abstractmethod
    def regeneration_request(
        self,
        source: ImageReference,
        prompt: str,
        config: BackendConfig,
    ) -> BackendRequest:
        """Build the redraw request."""

    @abstractmethod
    def extract_text(self, data: Dict[str, Any]) -> str:
        """Pull the generated text out of a response body."""

    @abstractmethod
    def extract_image(self, data: Dict[str, Any]) -> ImageReference:
        """Pull the generated image out of a response body."""

    def error_message(self, response: httpx.Response) -> str:
        """Best-effort error text from a failed response."""
        try:
            body = response.json()
        except ValueError:
            return response.text
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return str(error.get("message", response.text))
        return response.text


class GeminiAdapter(ProviderAdapter):
    """Google Generative Language ``generateContent`` API."""

    provider = ApiProvider.GOOGLE

    def _url(self, config: BackendConfig, model: str) -> str:
        return f"{config.base_url.rstrip('/')}/models/{model}:generateContent"

    def _headers(self, config: BackendConfig) -> Dict[str, str]:
        return {"x-goog-api-key": config.api_key, "Content-Type": "application/json"}

    def _encode(self, part: PromptPart) -> Dict[str, Any]:
        if isinstance(part, str):
            return {"text": part}
        return {"inline_data": {"mime_type": part.mime_type, "data": part.base64_data}}

    def analysis_request(self, parts, prompt, rubric, config) -> BackendRequest:
        return BackendRequest(
            url=self._url(config, config.analysis_model),
            headers=self._headers(config),
            payload={
                "contents": [{
                    "role": "user",
                    "parts": [self._encode(p) for p in parts] + [{"text": prompt}],
                }],
                "generationConfig": {
                    "responseMimeType": "application/json",
                    "responseSchema": analysis_response_schema(rubric),
                },
            },
        )

    def regeneration_request(self, source, prompt, config) -> BackendRequest:
        return BackendRequest(
            url=self._url(config, config.image_model),
            headers=self._headers(config),
            payload={
                "contents": [{
                    "role": "user",
                    "parts": [self._encode(source), {"text": prompt}],
                }],
                "generationConfig": {
                    "responseModalities": ["TEXT", "IMAGE"],
                    "imageConfig": {
                        "aspectRatio": config.aspect_ratio,
                        "imageSize": config.image_size,
                    },
                },
            },
        )

    def _parts(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Dict parts of the first candidate; anything else is dropped."""
        block_reason = _as_dict(data.get("promptFeedback")).get("blockReason")
        if block_reason:
            raise BackendResponseError(
                f"Request blocked by provider: {block_reason}",
                details={"block_reason": block_reason},
            )
        candidates = _as_list(data.get("candidates"))
        if not candidates:
            raise BackendResponseError("No candidates in Gemini response")
        parts = _as_list(_as_dict(_as_dict(candidates[0]).get("content")).get("parts"))
        return [part for part in parts if isinstance(part, dict)]

    def extract_text(self, data: Dict[str, Any]) -> str:
        text = "".join(
            part["text"] for part in self._parts(data) if isinstance(part.get("text"), str)
        )
        if not text.strip():
            raise BackendResponseError("No response text from Gemini")
        return text

    def extract_image(self, data: Dict[str, Any]) -> ImageReference:
        for part in self._parts(data):
            inline = _as_dict(part.get("inlineData") or part.get("inline_data"))
            if inline.get("data"):
                if not isinstance(inline["data"], str):
                    raise BackendResponseError("Invalid image payload: data is not base64 text")
                mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                try:
                    return ImageReference.from_base64(inline["data"], mime_type)
                except ValueError as e:
                    raise BackendResponseError(f"Invalid image payload: {e}") from e
        raise BackendResponseError("No image generated by Gemini")


class OpenRouterAdapter(ProviderAdapter):
    """OpenRouter chat completions API."""

    provider = ApiProvider.OPENROUTER
    supported_artifacts = frozenset({ArtifactKind.IMAGE, ArtifactKind.STEP_SEQUENCE})

    def _url(self, config: BackendConfig) -> str:
        return f"{config.base_url.rstrip('/')}/chat/completions"

    def _headers(self, config: BackendConfig) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
            "X-Title": "Persona Audit",
        }

    def _encode(self, part: PromptPart) -> Dict[str, Any]:
        if isinstance(part, str):
            return {"type": "text", "text": part}
        return {"type": "image_url", "image_url": {"url": part.to_data_url()}}

    def analysis_request(self, parts, prompt, rubric, config) -> BackendRequest:
        schema_hint = json.dumps(analysis_response_schema(rubric), ensure_ascii=False)
        return BackendRequest(
            url=self._url(config),
            headers=self._headers(config),
            payload={
                "model": config.analysis_model,
                "messages": [{
                    "role": "user",
                    "content": [self._encode(p) for p in parts] + [
                        {"type": "text", "text": f"{prompt}\nJSON schema:\n{schema_hint}"},
                    ],
                }],
                "response_format": {"type": "json_object"},
            },
        )

    def regeneration_request(self, source, prompt, config) -> BackendRequest:
        return BackendRequest(
            url=self._url(config),
            headers=self._headers(config),
            payload={
                "model": config.image_model,
                "messages": [{
                    "role": "user",
                    "content": [self._encode(source), {"type": "text", "text": prompt}],
                }],
                "modalities": ["image", "text"],
                "image_config": {"aspect_ratio": config.aspect_ratio},
            },
        )

    def _message(self, data: Dict[str, Any]) -> Dict[str, Any]:
        choices = _as_list(data.get("choices"))
        if not choices:
            raise BackendResponseError("No choices in OpenRouter response")
        return _as_dict(_as_dict(choices[0]).get("message"))

    def extract_text(self, data: Dict[str, Any]) -> str:
        content = self._message(data).get("content")
        if isinstance(content, list):
            content = "".join(
                item["text"] for item in content
                if isinstance(item, dict) and isinstance(item.get("text"), str)
            )
        if not isinstance(content, str) or not content.strip():
            raise BackendResponseError("No response text from OpenRouter")
        return content

    def extract_image(self, data: Dict[str, Any]) -> ImageReference:
        for image in _as_list(self._message(data).get("images")):
            url = _as_dict(_as_dict(image).get("image_url")).get("url")
            if isinstance(url, str) and url:
                try:
                    return ImageReference.from_data_url(url)
                except ValueError as e:
                    raise BackendResponseError(f"Invalid image payload: {e}") from e
        raise BackendResponseError("No image generated by OpenRouter")


# =============================================================================
# HTTP CLIENT
# =============================================================================


def parse_report(text: str, rubric: RubricDefinition) -> EvaluationReport:
    """
    Validate backend text as an EvaluationReport for a rubric.

    Raises:
        BackendResponseError: Invalid JSON, schema violation, or a
            dimension count that does not match the rubric.
    """
    cleaned = text.strip()
    fenced = _CODE_FENCE.match(cleaned)
    if fenced:
        cleaned = fenced.group(1)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise BackendResponseError(f"Failed to parse report JSON: {e}") from e
    if not isinstance(data, dict):
        raise BackendResponseError("Report JSON must be an object")

    try:
        report = EvaluationReport.from_dict(data)
    except ValidationError as e:
        raise BackendResponseError(
            f"Report failed schema validation ({e.error_count()} errors)",
            details={"errors": e.errors(include_url=False, include_input=False)},
        ) from e

    if len(report.dimension_scores) != rubric.dimension_count:
        raise BackendResponseError(
            f"Expected {rubric.dimension_count} dimension scores for "
            f"{rubric.model.value}, got {len(report.dimension_scores)}",
            details={
                "expected": rubric.dimension_count,
                "received": len(report.dimension_scores),
            },
        )
    return report


class HttpEvaluationClient(EvaluationClient):
    """
    httpx-backed evaluation client.

    Features:
    - Provider chosen per call from the config (Gemini, OpenRouter)
    - Automatic retry with exponential backoff for timeouts, 429 and 5xx
    - Retry-After honored on rate limits
    - Strict report validation
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        adapters: Optional[Dict[ApiProvider, ProviderAdapter]] = None,
    ):
        """
        Initialize the client.

        Args:
            http_client: Shared httpx client. Created lazily if None.
            adapters: Provider adapters keyed by provider.
        """
        self._client = http_client
        self._owns_client = http_client is None
        self._adapters = adapters or {
            ApiProvider.GOOGLE: GeminiAdapter(),
            ApiProvider.OPENROUTER: OpenRouterAdapter(),
        }

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _adapter(self, config: BackendConfig) -> ProviderAdapter:
        try:
            return self._adapters[config.provider]
        except KeyError:
            raise BackendError(
                f"No adapter for provider {config.provider.value}",
                details={"provider": config.provider.value},
            ) from None

    async def analyze(
        self,
        artifact: Artifact,
        persona: Persona,
        evaluation_model: EvaluationModel,
        config: BackendConfig,
    ) -> EvaluationReport:
        """
        Audit the artifact from one persona's perspective.

        Returns:
            Validated report stamped with the evaluation model.

        Raises:
            BackendError: On any transport, auth, or validation failure.
        """
        adapter = self._adapter(config)
        if artifact.kind not in adapter.supported_artifacts:
            raise BackendError(
                f"{adapter.provider.value} backend does not accept {artifact.kind.value} artifacts",
                details={"provider": adapter.provider.value, "artifact_kind": artifact.kind.value},
            )

        rubric = get_rubric(evaluation_model)
        prompt = build_analysis_prompt(persona, rubric, config.response_language, artifact.kind)
        request = adapter.analysis_request(artifact_parts(artifact), prompt, rubric, config)

        logger.info(
            "evaluation_client.analyze.started",
            provider=config.provider.value,
            model=config.analysis_model,
            evaluation_model=rubric.model.value,
            artifact_kind=artifact.kind.value,
        )
        data = await self._post(request, config)
        report = parse_report(_extract(adapter.extract_text, data), rubric)
        logger.info(
            "evaluation_client.analyze.completed",
            overall_score=report.overall_score,
            issues=len(report.issues),
        )
        return report.stamped(rubric.model)

    async def regenerate(
        self,
        artifact: Artifact,
        persona: Persona,
        report: EvaluationReport,
        config: BackendConfig,
    ) -> ImageReference:
        """
        Redraw the artifact's source image for one persona.

        Raises:
            BackendError: When there is no source image or the backend fails.
        """
        source = artifact.source_image()
        if source is None:
            raise BackendError(
                f"{artifact.kind.value} artifact has no source image to redraw",
                details={"artifact_kind": artifact.kind.value},
            )

        adapter = self._adapter(config)
        # Untagged reports were requested under the default model
        rubric = get_rubric(report.model_type or EvaluationModel.ETS)
        prompt = build_regeneration_prompt(persona, report, rubric)
        request = adapter.regeneration_request(source, prompt, config)

        logger.info(
            "evaluation_client.regenerate.started",
            provider=config.provider.value,
            model=config.image_model,
        )
        data = await self._post(request, config)
        image = _extract(adapter.extract_image, data)
        logger.info(
            "evaluation_client.regenerate.completed",
            mime_type=image.mime_type,
            size=image.size,
        )
        return image

    async def _post(self, request: BackendRequest, config: BackendConfig) -> Dict[str, Any]:
        """POST with retry for transient failures."""
        backoff = wait_exponential(multiplier=config.retry_delay_seconds, max=30)

        def wait(retry_state) -> float:
            error = retry_state.outcome.exception()
            if isinstance(error, RateLimitError) and error.retry_after:
                return min(error.retry_after, MAX_RETRY_AFTER)
            return backoff(retry_state)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(config.max_retries + 1),
            wait=wait,
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._send(request, config)
        raise BackendError("Retry loop exited without a result")

    async def _send(self, request: BackendRequest, config: BackendConfig) -> Dict[str, Any]:
        """Single HTTP attempt, mapped onto the BackendError hierarchy."""
        client = self._get_client()
        adapter = self._adapter(config)
        try:
            response = await client.post(
                request.url,
                json=request.payload,
                headers=request.headers,
                timeout=config.timeout_seconds,
            )
        except httpx.TimeoutException as e:
            logger.warning("evaluation_client.timeout", url=request.url)
            raise BackendTimeoutError(
                f"Request timed out after {config.timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            logger.warning("evaluation_client.transport_error", error=str(e))
            raise BackendUnavailableError(f"Transport error: {e}") from e

        status = response.status_code
        if status == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            logger.warning("evaluation_client.rate_limited", retry_after=retry_after)
            raise RateLimitError(
                f"Rate limit exceeded for {config.provider.value}",
                retry_after=retry_after,
            )
        if status in (401, 403):
            raise BackendAuthError(
                f"Authentication failed ({status}): {adapter.error_message(response)}",
                details={"status_code": status},
            )
        if status >= 500:
            logger.warning("evaluation_client.server_error", status_code=status)
            raise BackendUnavailableError(
                f"Server error ({status}): {adapter.error_message(response)}",
                details={"status_code": status},
            )
        if status != 200:
            raise BackendError(
                f"API error ({status}): {adapter.error_message(response)}",
                details={"status_code": status},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendResponseError(f"Response is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise BackendResponseError("Response body must be a JSON object")
        return data


def _extract(extractor, data: Dict[str, Any]):
    """Run an adapter extractor, reporting a malformed body as BackendResponseError."""
    try:
        return extractor(data)
    except _SHAPE_ERRORS as e:
        raise BackendResponseError(
            f"Unexpected response shape: {e}",
            details={"error_type": type(e).__name__},
        ) from e


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


def create_evaluation_client(
    http_client: Optional[httpx.AsyncClient] = None,
) -> HttpEvaluationClient:
    """Create an evaluation client with the Gemini and OpenRouter adapters."""
    return HttpEvaluationClient(http_client=http_client)
