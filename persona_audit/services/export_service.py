"""
Report Export Service

Rasterizes rendered report surfaces to PNG and bundles them into a
ZIP archive. Rasterization runs in a worker thread, one surface at a
time, so a batch never holds more than one full-size raster.
"""

import asyncio
import io
import re
import zipfile
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Union, runtime_checkable

from PIL import Image

from persona_audit.core.config import ExportConfig
from persona_audit.core.exceptions import ExportError, RasterizationError
from persona_audit.core.logger import get_logger

logger = get_logger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[\s/\\:*?"<>|]+')


@runtime_checkable
class RenderSurface(Protocol):
    """A rendered report view that can be captured as an image."""

    surface_id: str
    label: str

    def render(self) -> Image.Image:
        ...


class ImageSurface:
    """RenderSurface over an already rendered image or encoded image bytes."""

    def __init__(self, surface_id: str, label: str, image: Union[Image.Image, bytes]):
        self.surface_id = surface_id
        self.label = label
        self._image = image

    def render(self) -> Image.Image:
        if isinstance(self._image, Image.Image):
            return self._image
        image = Image.open(io.BytesIO(self._image))
        image.load()
        return image


@dataclass
class ExportArchive:
    """A ZIP blob of rasterized reports."""
    filename: str
    data: bytes
    entries: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.data)


def report_filename(name: str, prefix: str = "ETS_Report") -> str:
    """PNG file name for one persona's report."""
    safe = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("_") or "persona"
    return f"{prefix}_{safe}.png"


def _dedupe(filename: str, taken: set) -> str:
    if filename not in taken:
        return filename
    stem, suffix = filename.rsplit(".", 1)
    n = 2
    while f"{stem}_{n}.{suffix}" in taken:
        n += 1
    return f"{stem}_{n}.{suffix}"


class ReportExporter:
    """
    PNG and ZIP export for report surfaces.

    Padding, background color and pixel ratio come from ExportConfig.
    """

    def __init__(self, config: Optional[ExportConfig] = None):
        self.config = config or ExportConfig()

    def filename_for(self, surface: RenderSurface) -> str:
        return report_filename(surface.label, self.config.filename_prefix)

    def _rasterize(self, surface: RenderSurface) -> bytes:
        try:
            image = surface.render().convert("RGBA")
            pad = self.config.padding
            canvas = Image.new(
                "RGBA",
                (image.width + 2 * pad, image.height + 2 * pad),
                self.config.background,
            )
            canvas.alpha_composite(image, (pad, pad))

            ratio = self.config.pixel_ratio
            if ratio != 1:
                size = (max(1, round(canvas.width * ratio)), max(1, round(canvas.height * ratio)))
                canvas = canvas.resize(size, Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            canvas.convert("RGB").save(buffer, format="PNG")
            return buffer.getvalue()
        except Exception as e:
            raise RasterizationError(
                f"Could not rasterize {surface.label}: {e}",
                details={"surface_id": surface.surface_id},
            ) from e

    async def export_single(self, surface: RenderSurface) -> bytes:
        """
        Rasterize one surface to PNG bytes.

        Raises:
            RasterizationError: If the surface cannot be captured.
        """
        data = await asyncio.to_thread(self._rasterize, surface)
        logger.info(
            "export.single.completed",
            surface_id=surface.surface_id,
            filename=self.filename_for(surface),
            size=len(data),
        )
        return data

    async def export_batch(self, surfaces: Sequence[RenderSurface]) -> ExportArchive:
        """
        Rasterize surfaces one by one and bundle them into a ZIP.

        A surface that fails to rasterize is logged and left out.

        Raises:
            ExportError: When there is nothing to export.
        """
        if not surfaces:
            raise ExportError("No report surfaces to export")

        logger.info("export.batch.started", surfaces=len(surfaces))
        buffer = io.BytesIO()
        entries: List[str] = []
        skipped: List[str] = []
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for surface in surfaces:
                try:
                    data = await asyncio.to_thread(self._rasterize, surface)
                except RasterizationError as e:
                    logger.warning(
                        "export.batch.surface_skipped",
                        surface_id=surface.surface_id,
                        error=e.message,
                    )
                    skipped.append(surface.surface_id)
                    continue
                filename = _dedupe(self.filename_for(surface), set(entries))
                archive.writestr(filename, data)
                entries.append(filename)

        logger.info(
            "export.batch.completed",
            entries=len(entries),
            skipped=len(skipped),
        )
        return ExportArchive(
            filename=self.config.archive_name,
            data=buffer.getvalue(),
            entries=entries,
            skipped=skipped,
        )
