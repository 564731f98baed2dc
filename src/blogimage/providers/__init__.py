"""Image generation providers.

Providers are looked up by name in a :class:`ProviderRegistry` built at
startup. ``gemini`` is the only provider shipped today.
"""

from blogimage.core.config import BlogImageConfig

from .base import (
    ImageGenerationOptions,
    ImageProvider,
    ProviderFactory,
    ProviderRegistry,
    ProviderResult,
)
from .gemini import GeminiProvider


def build_default_registry(config: BlogImageConfig) -> ProviderRegistry:
    """Build a registry with every built-in provider registered."""
    registry = ProviderRegistry(config)
    registry.register(GeminiProvider.name, GeminiProvider.from_config)
    return registry


__all__ = [
    "GeminiProvider",
    "ImageGenerationOptions",
    "ImageProvider",
    "ProviderFactory",
    "ProviderRegistry",
    "ProviderResult",
    "build_default_registry",
]
