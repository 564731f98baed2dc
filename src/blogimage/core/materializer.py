"""Materialization orchestrator: turn a request into a saved, tagged image.

The pipeline is a single pass with no retries::

    Validated -> ProviderInvoked -> ProviderFailed                 (terminal)
                                 -> ImageReceived -> MetadataEmbedded
                                                  -> WriteFailed   (terminal)
                                                  -> Saved         (terminal)

Ordering guarantees:

- the provider call always happens before any filesystem mutation
- metadata is embedded before the write
- ``tEXt`` chunks are only built for ``image/png``; other formats are written
  exactly as the provider returned them

Every failure is converted into a :class:`MaterializationOutcome`; nothing is
raised to the caller. Retry decisions are left to the caller, which receives
the provider's ``retryable`` classification.

Usage Example
-------------
    >>> import asyncio
    >>> from blogimage.core.config import config
    >>> from blogimage.providers import build_default_registry
    >>> materializer = ImageMaterializer(build_default_registry(config), config)
    >>> outcome = asyncio.run(
    ...     materializer.materialize(GenerationRequest(prompt="sunset over the sea"))
    ... )
    >>> outcome.saved_path
    PosixPath('.../generated-images/blog-image-2026-10-19T09-30-12.png')
"""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import datetime, timezone

from blogimage.providers.base import ImageGenerationOptions, ProviderRegistry

from .config import BlogImageConfig
from .errors import (
    BlogImageError,
    EmptyImageDataError,
    ErrorKind,
    InvalidInputError,
    NotConfiguredError,
    WriteFailureError,
)
from .geometry import reconcile
from .models import GenerationRequest, MaterializationOutcome, ProvenanceRecord
from .output import resolve_output_path, sanitize_filename, write_image
from .png_metadata import embed_png_metadata
from .presets import PRESET_KEYS, get_preset
from .security import safe_error_message, validate_output_path, validate_prompt

logger = logging.getLogger(__name__)

PNG_MIME_TYPE = "image/png"


def build_provider_prompt(prompt: str, title: str | None) -> str:
    """Add blog post title context to a prompt."""
    if title:
        return f'For a blog post titled "{title}": {prompt}'
    return prompt


class ImageMaterializer:
    """Runs the generate -> reconcile -> embed -> write pipeline.

    Args:
        registry: Provider registry to look providers up in.
        config: Configuration snapshot (output directory, filename prefix,
            credentials to redact from error text).
    """

    def __init__(self, registry: ProviderRegistry, config: BlogImageConfig) -> None:
        self.registry = registry
        self.config = config

    def _secrets(self) -> tuple[str, ...]:
        if self.config.has_google_api_key:
            return (self.config.google_api_key.get_secret_value(),)
        return ()

    def _safe(self, error: BaseException | str) -> str:
        return safe_error_message(error, self._secrets())

    async def materialize(self, request: GenerationRequest) -> MaterializationOutcome:
        """Generate, tag and save one image.

        Args:
            request: The generation request.

        Returns:
            Exactly one outcome. Failures carry an :class:`ErrorKind`:
            ``invalid-input`` and ``not-configured`` happen before any
            provider call, ``provider-failure`` and ``empty-image-data``
            leave the filesystem untouched, ``write-failure`` means the image
            was generated but not saved.
        """
        fmt = request.format
        provider_name = request.provider or self.config.default_provider

        # --- Validated -----------------------------------------------------
        preset = get_preset(fmt)
        if preset is None:
            return MaterializationOutcome.failure(
                ErrorKind.INVALID_INPUT,
                "Invalid format",
                f"Unknown format: {fmt}. Available: {', '.join(PRESET_KEYS)}",
                format=fmt,
            )

        try:
            prompt = validate_prompt(request.prompt)
            output_path = (
                validate_output_path(request.output_path) if request.output_path else None
            )
        except InvalidInputError as e:
            return MaterializationOutcome.failure(
                ErrorKind.INVALID_INPUT, "Invalid input", self._safe(e), format=fmt, preset=preset
            )

        if provider_name not in self.registry:
            return MaterializationOutcome.failure(
                ErrorKind.INVALID_INPUT,
                "Invalid provider",
                f"Unknown provider: {provider_name}. "
                f"Available: {', '.join(self.registry.list_available())}",
                format=fmt,
                preset=preset,
            )

        provider = self.registry.create(provider_name)
        if not provider.is_configured():
            logger.warning(f"Provider '{provider_name}' is not configured")
            error = NotConfiguredError(
                provider_name, "Set the GOOGLE_API_KEY environment variable."
            )
            return MaterializationOutcome.failure(
                error.kind,
                "Provider not configured",
                str(error),
                format=fmt,
                preset=preset,
            )

        # --- ProviderInvoked ---------------------------------------------------
        options = ImageGenerationOptions(
            prompt=build_provider_prompt(prompt, request.title),
            aspect_ratio=preset.aspect_ratio,
            width=preset.width,
            height=preset.height,
            quality=request.quality,
            style=request.style,
        )

        try:
            result = await provider.generate_image(options)
        except BlogImageError as e:
            logger.error(f"Image generation failed ({e.kind.value}): {self._safe(e)}")
            return MaterializationOutcome.failure(
                e.kind,
                "Image generation failed",
                self._safe(e),
                format=fmt,
                preset=preset,
                retryable=e.retryable,
            )
        except Exception as e:
            logger.exception("Unexpected provider error")
            return MaterializationOutcome.failure(
                ErrorKind.PROVIDER_FAILURE,
                "Image generation failed",
                self._safe(e),
                format=fmt,
                preset=preset,
            )

        # --- ImageReceived -----------------------------------------------------
        try:
            raw = base64.b64decode(result.base64_data)
        except (binascii.Error, ValueError):
            raw = b""
        if not raw:
            error = EmptyImageDataError(
                "Provider returned no decodable image data", provider_name
            )
            return MaterializationOutcome.failure(
                error.kind,
                "Image generation failed",
                str(error),
                format=fmt,
                preset=preset,
                retryable=error.retryable,
            )

        reconciliation = reconcile(
            preset.aspect_ratio,
            preset.width,
            preset.height,
            preset.native_aspect_ratio,
            preset.provider_aspect_ratio,
            result.width,
            result.height,
        )
        if reconciliation.advisory:
            logger.warning(reconciliation.advisory.message)

        # --- MetadataEmbedded --------------------------------------------------
        final = raw
        if result.mime_type == PNG_MIME_TYPE:
            record = ProvenanceRecord(
                prompt=prompt,
                model=result.model,
                provider=provider_name,
                format=fmt,
                style=request.style,
                title=request.title,
                generated_at=datetime.now(timezone.utc).isoformat(),
            )
            final = embed_png_metadata(raw, record)

        # --- Saved / WriteFailed -----------------------------------------------
        prefix = sanitize_filename(request.title) if request.title else None
        try:
            target = resolve_output_path(output_path, result.mime_type, self.config, prefix)
            saved_path = write_image(target, final)
        except OSError as e:
            error = WriteFailureError(
                f"Image was generated but could not be saved: {self._safe(e)}"
            )
            logger.error(str(error))
            return MaterializationOutcome.failure(
                error.kind,
                "Failed to save image",
                str(error),
                format=fmt,
                preset=preset,
                image_data=final,
                byte_size=len(final),
                mime_type=result.mime_type,
                model=result.model,
                width=reconciliation.width,
                height=reconciliation.height,
                requested_width=preset.width,
                requested_height=preset.height,
            )

        return MaterializationOutcome(
            success=True,
            message=f"Image generated and saved to {saved_path}",
            format=fmt,
            preset=preset,
            saved_path=saved_path,
            byte_size=len(final),
            mime_type=result.mime_type,
            model=result.model,
            image_data=final,
            width=reconciliation.width,
            height=reconciliation.height,
            requested_width=preset.width,
            requested_height=preset.height,
            advisory=reconciliation.advisory,
        )
