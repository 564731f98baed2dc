"""Gemini image generation provider.

Uses the ``google-genai`` SDK to call Gemini image models:

- ``standard`` quality: ``gemini-2.5-flash-image`` (configurable)
- ``high`` quality: ``gemini-3-pro-image-preview`` (configurable), with
  ``2K``/``4K`` output requested for wide presets

Gemini renders a fixed set of aspect ratios (``1:1``, ``16:9``, ``9:16``,
``4:3``, ``3:4``). Presets outside that set are mapped to the nearest one by
:func:`~blogimage.core.presets.to_provider_aspect_ratio`.

Output Dimensions
-----------------
Gemini does not report the pixel size of the image it returns. The provider
reads it from the image header with Pillow (no pixel decoding). If the header
cannot be read, :func:`estimate_output_dimensions` supplies a best-effort
guess from the aspect ratio and requested width.
"""

from __future__ import annotations

import base64
import io
import logging
from typing import Any

from google import genai
from google.genai import types
from PIL import Image, UnidentifiedImageError

from blogimage.core.config import BlogImageConfig
from blogimage.core.errors import EmptyImageDataError, NotConfiguredError, ProviderError
from blogimage.core.presets import PROVIDER_ASPECT_RATIOS, to_provider_aspect_ratio

from .base import ImageGenerationOptions, ProviderResult

logger = logging.getLogger(__name__)

# Observed Gemini output sizes per aspect ratio.
STANDARD_SIZES: dict[str, tuple[int, int]] = {
    "1:1": (1024, 1024),
    "16:9": (1536, 864),
    "9:16": (864, 1536),
    "4:3": (1280, 960),
    "3:4": (960, 1280),
}

MAX_RESOLUTION = (4096, 4096)

_RETRYABLE_MARKERS = (
    "rate limit",
    "timeout",
    "timed out",
    "503",
    "429",
    "unavailable",
    "overloaded",
)
_RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


def estimate_output_dimensions(aspect_ratio: str, requested_width: int) -> tuple[int, int]:
    """Estimate the size Gemini produces for an aspect ratio.

    Wide requests (over 1500px) are scaled by 1.5, very wide ones (over
    3000px) by 2.5, mirroring the ``2K``/``4K`` image sizes the pro model is
    asked for. This is an approximation and only used when the returned image
    header cannot be read.
    """
    width, height = STANDARD_SIZES.get(aspect_ratio, STANDARD_SIZES["1:1"])
    if requested_width > 1500:
        scale = 2.5 if requested_width > 3000 else 1.5
        return round(width * scale), round(height * scale)
    return width, height


def measure_image_dimensions(data: bytes) -> tuple[int, int] | None:
    """Read ``(width, height)`` from an encoded image header, or None."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError, ValueError):
        return None


def is_retryable_error(error: BaseException) -> bool:
    """Classify an upstream failure as transient or not."""
    status = getattr(error, "code", None) or getattr(error, "status_code", None)
    if isinstance(status, int) and status in _RETRYABLE_STATUS:
        return True
    if isinstance(error, TimeoutError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in _RETRYABLE_MARKERS)


class GeminiProvider:
    """Gemini image provider.

    Args:
        api_key: Gemini API key. Without it the provider reports itself as not
            configured and never creates a client.
        default_model: Model for ``standard`` quality.
        pro_model: Model for ``high`` quality.
        timeout: Request timeout in seconds.
        client: Pre-built ``genai.Client`` (mainly for tests).
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        default_model: str = "gemini-2.5-flash-image",
        pro_model: str = "gemini-3-pro-image-preview",
        timeout: float = 60.0,
        client: Any | None = None,
    ) -> None:
        self.default_model = default_model
        self.pro_model = pro_model
        self.timeout = timeout
        self._client = client

        if self._client is None and api_key:
            self._client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(timeout * 1000)),
            )

    @classmethod
    def from_config(cls, config: BlogImageConfig) -> GeminiProvider:
        api_key = config.google_api_key.get_secret_value() if config.has_google_api_key else None
        return cls(
            api_key=api_key,
            default_model=config.gemini_model,
            pro_model=config.gemini_pro_model,
            timeout=config.request_timeout,
        )

    def is_configured(self) -> bool:
        return self._client is not None

    def get_supported_aspect_ratios(self) -> list[str]:
        return list(PROVIDER_ASPECT_RATIOS)

    def get_max_resolution(self) -> tuple[int, int]:
        return MAX_RESOLUTION

    def select_model(self, quality: str) -> str:
        return self.pro_model if quality == "high" else self.default_model

    def _image_config(self, model: str, aspect_ratio: str, width: int) -> types.ImageConfig:
        if model == self.pro_model and width > 1500:
            return types.ImageConfig(
                aspect_ratio=aspect_ratio,
                image_size="4K" if width > 3000 else "2K",
            )
        return types.ImageConfig(aspect_ratio=aspect_ratio)

    async def generate_image(self, options: ImageGenerationOptions) -> ProviderResult:
        """Generate one image.

        Raises:
            NotConfiguredError: If no API key was supplied. Raised before any
                network call.
            EmptyImageDataError: If the response contains no image data.
            ProviderError: For any other upstream failure.
        """
        if self._client is None:
            raise NotConfiguredError(self.name, "Set the GOOGLE_API_KEY environment variable.")

        model = self.select_model(options.quality)
        aspect_ratio = to_provider_aspect_ratio(options.aspect_ratio)
        prompt = f"{options.style} style: {options.prompt}" if options.style else options.prompt

        logger.info(f"Requesting image from {model} at {aspect_ratio}")

        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=[types.Content(role="user", parts=[types.Part(text=prompt)])],
                config=types.GenerateContentConfig(
                    response_modalities=["TEXT", "IMAGE"],
                    image_config=self._image_config(model, aspect_ratio, options.width),
                ),
            )
        except Exception as e:
            retryable = is_retryable_error(e)
            logger.error(f"Gemini API call failed (retryable={retryable}): {type(e).__name__}")
            raise ProviderError(
                f"Gemini API error: {e}", self.name, "API_ERROR", retryable
            ) from e

        candidates = getattr(response, "candidates", None) or []
        content = candidates[0].content if candidates else None
        parts = getattr(content, "parts", None) if content is not None else None
        if not parts:
            raise EmptyImageDataError("No image generated in response", self.name, "NO_IMAGE")

        for part in parts:
            inline = getattr(part, "inline_data", None)
            mime_type = getattr(inline, "mime_type", None) or ""
            if not mime_type.startswith("image/"):
                if getattr(part, "text", None):
                    logger.info(f"Gemini text response: {part.text}")
                continue

            data = inline.data
            if not data:
                raise EmptyImageDataError(
                    "Empty image data in response", self.name, "EMPTY_IMAGE_DATA"
                )
            if isinstance(data, str):
                data = base64.b64decode(data)

            dimensions = measure_image_dimensions(data)
            if dimensions is None:
                dimensions = estimate_output_dimensions(aspect_ratio, options.width)
                logger.info(f"Estimated output dimensions: {dimensions[0]}x{dimensions[1]}")

            usage = getattr(response, "usage_metadata", None)
            return ProviderResult(
                base64_data=base64.b64encode(data).decode("ascii"),
                mime_type=mime_type,
                width=dimensions[0],
                height=dimensions[1],
                model=model,
                metadata={
                    "aspect_ratio": aspect_ratio,
                    "requested_width": options.width,
                    "requested_height": options.height,
                    "prompt_tokens": getattr(usage, "prompt_token_count", None),
                    "candidates_tokens": getattr(usage, "candidates_token_count", None),
                },
            )

        raise EmptyImageDataError("No image data found in response", self.name, "NO_IMAGE_DATA")
