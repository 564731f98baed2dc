"""Blog Image Generator - AI images for blog posts and social media, tagged with provenance."""

__version__ = "1.1.1"

from blogimage.core.config import BlogImageConfig, config
from blogimage.core.materializer import ImageMaterializer
from blogimage.core.models import GenerationRequest, GenerationResult, MaterializationOutcome
from blogimage.providers import ProviderRegistry, build_default_registry

__all__ = [
    "BlogImageConfig",
    "GenerationRequest",
    "GenerationResult",
    "ImageMaterializer",
    "MaterializationOutcome",
    "ProviderRegistry",
    "build_default_registry",
    "config",
]
