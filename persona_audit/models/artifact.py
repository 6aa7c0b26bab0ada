"""
Artifact models.

The artifact under evaluation is a closed tagged variant: a single
image, an ordered sequence of flow steps, or a video. Consumers
dispatch on ``kind`` rather than sniffing payloads.
"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from .enums import ArtifactKind

_WHITESPACE = re.compile(r"\s+")

_DATA_URL_PATTERN = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w=.+-]+)*;base64,(?P<data>.*)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class MediaReference:
    """Inline media payload with its MIME type."""
    data: bytes
    mime_type: str

    @property
    def base64_data(self) -> str:
        """Payload as base64 text, without a data URL prefix."""
        return base64.b64encode(self.data).decode("ascii")

    @property
    def size(self) -> int:
        return len(self.data)

    def is_empty(self) -> bool:
        return not self.data

    def to_data_url(self) -> str:
        """Encode as a ``data:`` URL."""
        return f"data:{self.mime_type};base64,{self.base64_data}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (payload summarized, not inlined)."""
        return {"mime_type": self.mime_type, "size": self.size}

    @classmethod
    def from_data_url(cls, url: str):
        """
        Parse a base64 ``data:`` URL.

        Raises:
            ValueError: If the URL is not a base64 data URL.
        """
        match = _DATA_URL_PATTERN.match(url.strip())
        if not match:
            raise ValueError("Not a base64 data URL")
        try:
            payload = base64.b64decode(_WHITESPACE.sub("", match.group("data")), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
        return cls(data=payload, mime_type=match.group("mime"))

    @classmethod
    def from_base64(cls, data: str, mime_type: str):
        """Create from bare base64 text."""
        try:
            payload = base64.b64decode(_WHITESPACE.sub("", data), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
        return cls(data=payload, mime_type=mime_type)


@dataclass(frozen=True)
class ImageReference(MediaReference):
    """An image payload (source screenshot or redrawn result)."""
    mime_type: str = "image/png"


@dataclass(frozen=True)
class FlowStep:
    """One screenshot in a flow, with what the user does at that step."""
    image: ImageReference
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"image": self.image.to_dict(), "description": self.description}


@dataclass(frozen=True)
class ImageArtifact:
    """A single screenshot."""
    image: ImageReference
    kind: ArtifactKind = field(default=ArtifactKind.IMAGE, init=False)

    def is_empty(self) -> bool:
        return self.image.is_empty()

    def source_image(self) -> Optional[ImageReference]:
        return self.image

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "image": self.image.to_dict()}


@dataclass(frozen=True)
class StepSequenceArtifact:
    """An ordered flow of screenshots."""
    steps: Tuple[FlowStep, ...] = ()
    kind: ArtifactKind = field(default=ArtifactKind.STEP_SEQUENCE, init=False)

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "steps", tuple(self.steps))

    def is_empty(self) -> bool:
        return not self.steps or any(step.image.is_empty() for step in self.steps)

    def source_image(self) -> Optional[ImageReference]:
        """The first step stands in for the flow when redrawing."""
        return self.steps[0].image if self.steps else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "steps": [step.to_dict() for step in self.steps],
        }


@dataclass(frozen=True)
class VideoArtifact:
    """A short screen recording, optionally with a poster frame."""
    video: MediaReference
    poster: Optional[ImageReference] = None
    kind: ArtifactKind = field(default=ArtifactKind.VIDEO, init=False)

    def is_empty(self) -> bool:
        return self.video.is_empty()

    def source_image(self) -> Optional[ImageReference]:
        """Redraws target the poster frame; no poster means nothing to redraw."""
        if self.poster is None or self.poster.is_empty():
            return None
        return self.poster

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "video": self.video.to_dict(),
            "poster": self.poster.to_dict() if self.poster else None,
        }


Artifact = Union[ImageArtifact, StepSequenceArtifact, VideoArtifact]
