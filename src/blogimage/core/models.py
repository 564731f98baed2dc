"""Value models for the image materialization pipeline.

All models are frozen Pydantic models. A request flows through the pipeline
as follows:

1. :class:`GenerationRequest` is built by the validation layer (the HTTP API
   or a direct caller) and consumed once by the orchestrator.
2. The provider returns a :class:`~blogimage.providers.base.ProviderResult`.
3. The orchestrator assembles a :class:`ProvenanceRecord` and passes it into
   the PNG metadata codec.
4. Geometry reconciliation may produce a :class:`GeometryAdvisory`.
5. Exactly one :class:`MaterializationOutcome` is produced per request and
   converted to the outward :class:`GenerationResult` record.
"""

from __future__ import annotations

import base64
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import ErrorKind
from .output import format_file_size
from .presets import DEFAULT_FORMAT, PlatformPreset

Quality = Literal["standard", "high"]


class GenerationRequest(BaseModel):
    """A validated request to generate and save one image.

    Attributes:
        prompt: Description of the image to generate (already sanitised).
        format: Preset key naming the target geometry.
        quality: ``standard`` (faster) or ``high`` (pro model).
        style: Optional style hint, e.g. ``photorealistic``.
        title: Optional blog post title used as prompt context.
        output_path: Optional file or directory to save into.
        provider: Name of the provider to use. None means the configured
            ``default_provider``.
    """

    model_config = ConfigDict(frozen=True)

    prompt: str
    format: str = DEFAULT_FORMAT
    quality: Quality = "standard"
    style: str | None = None
    title: str | None = None
    output_path: str | None = None
    provider: str | None = None


class ProvenanceRecord(BaseModel):
    """Generation context embedded into the saved image."""

    model_config = ConfigDict(frozen=True)

    prompt: str | None = None
    model: str | None = None
    provider: str | None = None
    format: str | None = None
    style: str | None = None
    title: str | None = None
    generated_at: str | None = None


class AdvisoryCategory(str, Enum):
    """Why the delivered geometry differs from the requested preset."""

    NATIVE_MISMATCH = "native-mismatch"
    DIMENSION_DRIFT = "dimension-drift"


class GeometryAdvisory(BaseModel):
    """A warning attached to a result whose geometry diverges from the preset."""

    model_config = ConfigDict(frozen=True)

    category: AdvisoryCategory
    message: str


class ImageDimensions(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    requested_width: int | None = None
    requested_height: int | None = None


class GeneratedImageInfo(BaseModel):
    """Image section of the outward result record."""

    model_config = ConfigDict(frozen=True)

    base64_data: str
    mime_type: str
    format: str
    dimensions: ImageDimensions
    file_size: str
    saved_to: str | None = None


class GenerationResult(BaseModel):
    """Outward result record returned to the calling shell.

    ``error`` is always passed through
    :func:`~blogimage.core.security.safe_error_message` before it lands here.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    image: GeneratedImageInfo | None = None
    preset: PlatformPreset | None = None
    warning: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    retryable: bool = False


class MaterializationOutcome(BaseModel):
    """Terminal artifact of one materialization.

    Success outcomes carry the saved path, final byte size, geometry and the
    final (possibly metadata-embedded) image bytes. Failure outcomes carry an
    error kind and a sanitised message.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    format: str
    preset: PlatformPreset | None = None
    saved_path: Path | None = None
    byte_size: int | None = None
    mime_type: str | None = None
    model: str | None = None
    image_data: bytes | None = Field(default=None, repr=False)
    width: int | None = None
    height: int | None = None
    requested_width: int | None = None
    requested_height: int | None = None
    advisory: GeometryAdvisory | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    retryable: bool = False

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        error: str,
        *,
        format: str,
        preset: PlatformPreset | None = None,
        retryable: bool = False,
        **image_fields: Any,
    ) -> MaterializationOutcome:
        """Build a failed outcome.

        ``image_fields`` carry an image that was generated but not saved.
        """
        return cls(
            success=False,
            message=message,
            format=format,
            preset=preset,
            error=error,
            error_kind=kind,
            retryable=retryable,
            **image_fields,
        )

    def to_result(self) -> GenerationResult:
        """Convert to the outward :class:`GenerationResult` record."""
        image = None
        if self.image_data is not None:
            image = GeneratedImageInfo(
                base64_data=base64.b64encode(self.image_data).decode("ascii"),
                mime_type=self.mime_type or "image/png",
                format=self.format,
                dimensions=ImageDimensions(
                    width=self.width or 0,
                    height=self.height or 0,
                    requested_width=self.requested_width,
                    requested_height=self.requested_height,
                ),
                file_size=format_file_size(self.byte_size or 0),
                saved_to=str(self.saved_path) if self.saved_path else None,
            )

        return GenerationResult(
            success=self.success,
            message=self.message,
            image=image,
            preset=self.preset,
            warning=self.advisory.message if self.advisory else None,
            error=self.error,
            error_kind=self.error_kind,
            retryable=self.retryable,
        )
