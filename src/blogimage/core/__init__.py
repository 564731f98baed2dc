"""Core image materialization pipeline.

- **config.py**: Environment-based configuration (Pydantic Settings)
- **presets.py**: Static platform format presets
- **geometry.py**: Requested vs. actual geometry reconciliation
- **png_metadata.py**: PNG ``tEXt`` provenance chunk codec
- **output.py**: Output path resolution and writing
- **security.py**: Input validation and secret redaction
- **materializer.py**: The orchestrator tying the above together

Usage Example
-------------
    from blogimage.core import config
    from blogimage.core.materializer import ImageMaterializer
    from blogimage.providers import build_default_registry

    materializer = ImageMaterializer(build_default_registry(config), config)
"""

from blogimage.core.config import BlogImageConfig, config
from blogimage.core.errors import ErrorKind
from blogimage.core.models import (
    AdvisoryCategory,
    GenerationRequest,
    GeometryAdvisory,
    MaterializationOutcome,
    ProvenanceRecord,
)
from blogimage.core.presets import PLATFORM_PRESETS, PRESET_KEYS, PlatformPreset

__all__ = [
    "AdvisoryCategory",
    "BlogImageConfig",
    "ErrorKind",
    "GenerationRequest",
    "GeometryAdvisory",
    "MaterializationOutcome",
    "PLATFORM_PRESETS",
    "PRESET_KEYS",
    "PlatformPreset",
    "ProvenanceRecord",
    "config",
]
