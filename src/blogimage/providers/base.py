"""Provider capability interface and registry.

A provider is anything that implements :class:`ImageProvider`: ``name``,
``is_configured()``, ``generate_image()``, ``get_supported_aspect_ratios()``
and ``get_max_resolution()``. There is no base class to inherit from; the
registry only checks the capability.

Provider Registry
-----------------
:class:`ProviderRegistry` is a flat ``name -> factory`` mapping. It is built
once at startup from a :class:`~blogimage.core.config.BlogImageConfig`
snapshot, and every factory receives that same snapshot. Nothing mutates the
configuration afterwards.

    >>> from blogimage.core.config import config
    >>> from blogimage.providers import build_default_registry
    >>> registry = build_default_registry(config)
    >>> registry.list_available()
    ['gemini']
    >>> provider = registry.create("gemini")
    >>> provider.is_configured()
    True

Errors
------
Providers raise :class:`~blogimage.core.errors.NotConfiguredError` before any
network call when they lack credentials, and
:class:`~blogimage.core.errors.ProviderError` (with ``retryable`` set for rate
limits, timeouts and temporary unavailability) when the upstream call fails.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from blogimage.core.config import BlogImageConfig
from blogimage.core.models import Quality

logger = logging.getLogger(__name__)


class ImageGenerationOptions(BaseModel):
    """Parameters passed to a provider for one image.

    Attributes:
        prompt: Prompt text, already enriched with title context.
        aspect_ratio: Target aspect ratio (``W:H``) as declared by the preset.
        width: Target width in pixels (a hint; the provider may differ).
        height: Target height in pixels (a hint; the provider may differ).
        quality: ``standard`` or ``high``.
        style: Optional style hint.
    """

    model_config = ConfigDict(frozen=True)

    prompt: str
    aspect_ratio: str
    width: int
    height: int
    quality: Quality = "standard"
    style: str | None = None


class ProviderResult(BaseModel):
    """Image returned by a provider.

    Attributes:
        base64_data: Base64-encoded image bytes.
        mime_type: MIME type of the encoded image (e.g. ``image/png``).
        width: Actual width, if the provider knows it.
        height: Actual height, if the provider knows it.
        model: Identifier of the model that produced the image.
        metadata: Provider-specific extras (token counts, aspect ratio used).
    """

    model_config = ConfigDict(frozen=True)

    base64_data: str
    mime_type: str
    width: int | None = None
    height: int | None = None
    model: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class ImageProvider(Protocol):
    """Capability interface every image provider satisfies."""

    name: str

    def is_configured(self) -> bool: ...

    async def generate_image(self, options: ImageGenerationOptions) -> ProviderResult: ...

    def get_supported_aspect_ratios(self) -> list[str]: ...

    def get_max_resolution(self) -> tuple[int, int]: ...


ProviderFactory = Callable[[BlogImageConfig], ImageProvider]


class ProviderRegistry:
    """Registry mapping provider names to factories.

    Attributes:
        config: Configuration snapshot handed to every factory.
    """

    def __init__(self, config: BlogImageConfig) -> None:
        self.config = config
        self._factories: dict[str, ProviderFactory] = {}
        self._instances: dict[str, ImageProvider] = {}

    def register(self, name: str, factory: ProviderFactory) -> None:
        """Register a provider factory under ``name``.

        Re-registering a name replaces the factory and drops any cached
        instance.
        """
        if name in self._factories:
            logger.warning(f"Provider '{name}' is already registered, overwriting")
        self._factories[name] = factory
        self._instances.pop(name, None)
        logger.info(f"Registered provider: {name}")

    def create(self, name: str) -> ImageProvider:
        """Return the provider instance for ``name``.

        Instances are created on first use and reused afterwards.

        Raises:
            KeyError: If ``name`` is not registered.
        """
        if name not in self._factories:
            available = ", ".join(self.list_available())
            raise KeyError(f"Provider '{name}' not found. Available providers: {available}")

        if name not in self._instances:
            provider = self._factories[name](self.config)
            if not isinstance(provider, ImageProvider):
                raise TypeError(f"Factory for '{name}' did not return an image provider")
            self._instances[name] = provider
            logger.info(f"Instantiated provider: {name}")
        return self._instances[name]

    def list_available(self) -> list[str]:
        """List registered provider names."""
        return list(self._factories)

    def list_configured(self) -> list[str]:
        """List registered providers whose credentials are present."""
        return [name for name in self._factories if self.create(name).is_configured()]

    def __contains__(self, name: object) -> bool:
        return name in self._factories
