"""Pydantic request models for the Blog Image API.

FastAPI uses these for request validation and OpenAPI generation. Responses
are the :class:`~blogimage.core.models.GenerationResult` record.

Models
------
GenerateImageRequest
    Payload for ``POST /api/generate``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from blogimage.core.models import GenerationRequest, Quality
from blogimage.core.presets import DEFAULT_FORMAT, PRESET_KEYS


class GenerateImageRequest(BaseModel):
    """Request body for the ``POST /api/generate`` endpoint.

    Attributes:
        prompt: Description of the image to generate (3-4000 characters).
        format: Platform preset key. Defaults to ``ghost-banner``.
        quality: ``standard`` (faster) or ``high`` (better quality, pro model).
        style: Optional style hint such as ``photorealistic`` or ``minimalist``.
        title: Optional blog post title, added to the prompt as context.
        output_path: Optional file or directory to save the image to.
        provider: Image generation provider. Defaults to the configured
            ``default_provider`` (``gemini``).
    """

    prompt: str = Field(
        ...,
        min_length=3,
        max_length=4000,
        description="Description of the image to generate.",
    )
    format: str = Field(
        default=DEFAULT_FORMAT,
        description="Platform preset (e.g. 'ghost-banner', 'instagram-post', 'twitter-post').",
    )
    quality: Quality = Field(
        default="standard",
        description="Quality level: 'standard' (faster) or 'high' (better quality).",
    )
    style: str | None = Field(
        default=None,
        max_length=200,
        description="Optional style hint (e.g. 'photorealistic', 'illustration').",
    )
    title: str | None = Field(
        default=None,
        max_length=200,
        description="Optional blog post title for context.",
    )
    output_path: str | None = Field(
        default=None,
        max_length=500,
        description="Optional path to save the image file.",
    )
    provider: str | None = Field(
        default=None,
        description="Image generation provider to use.",
    )

    @field_validator("format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        if value not in PRESET_KEYS:
            raise ValueError(f"Unknown format: {value}. Available: {', '.join(PRESET_KEYS)}")
        return value

    def to_generation_request(self) -> GenerationRequest:
        return GenerationRequest(**self.model_dump())
