"""Platform format presets.

Each preset declares the geometry a publishing platform expects and how that
geometry maps onto the aspect ratios an upstream provider can produce
natively. The table is static and read-only; it is loaded once at import time.

Providers only render a handful of aspect ratios (see
:data:`PROVIDER_ASPECT_RATIOS`). Presets whose ratio is not in that set carry
``native_aspect_ratio=False`` and a ``provider_aspect_ratio`` naming the
closest supported ratio, which is what gets requested upstream.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PresetCategory = Literal["blog", "social", "video", "generic"]

PROVIDER_ASPECT_RATIOS: tuple[str, ...] = ("1:1", "16:9", "9:16", "4:3", "3:4")

DEFAULT_FORMAT = "ghost-banner"


class PlatformPreset(BaseModel):
    """Declared target geometry for a publishing platform."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    aspect_ratio: str
    native_aspect_ratio: bool
    provider_aspect_ratio: str
    category: PresetCategory


def parse_aspect_ratio(ratio: str) -> float:
    """Parse a ``W:H`` ratio string into ``W / H``.

    Raises:
        ValueError: If the string is not two positive numbers joined by ``:``.
    """
    parts = ratio.split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid aspect ratio: {ratio!r}")
    try:
        w, h = float(parts[0]), float(parts[1])
    except ValueError as e:
        raise ValueError(f"Invalid aspect ratio: {ratio!r}") from e
    if w <= 0 or h <= 0:
        raise ValueError(f"Invalid aspect ratio: {ratio!r}")
    return w / h


def to_provider_aspect_ratio(ratio: str) -> str:
    """Map any ``W:H`` ratio onto the nearest provider-supported ratio.

    Supported ratios map to themselves. Anything else picks the supported
    ratio with the smallest numeric distance; ties keep table order.
    """
    if ratio in PROVIDER_ASPECT_RATIOS:
        return ratio
    target = parse_aspect_ratio(ratio)
    return min(PROVIDER_ASPECT_RATIOS, key=lambda r: abs(parse_aspect_ratio(r) - target))


def _preset(
    name: str,
    description: str,
    width: int,
    height: int,
    aspect_ratio: str,
    category: PresetCategory,
) -> PlatformPreset:
    provider_ratio = to_provider_aspect_ratio(aspect_ratio)
    return PlatformPreset(
        name=name,
        description=description,
        width=width,
        height=height,
        aspect_ratio=aspect_ratio,
        native_aspect_ratio=provider_ratio == aspect_ratio,
        provider_aspect_ratio=provider_ratio,
        category=category,
    )


PLATFORM_PRESETS: MappingProxyType[str, PlatformPreset] = MappingProxyType(
    {
        # Blog
        "ghost-banner": _preset(
            "Ghost Blog Banner",
            "Feature image for Ghost blog posts",
            1200, 675, "16:9", "blog",
        ),
        "ghost-square": _preset(
            "Ghost Square Card",
            "Square card image for Ghost collections",
            1024, 1024, "1:1", "blog",
        ),
        "medium-banner": _preset(
            "Medium Header",
            "Header image for Medium stories",
            1400, 788, "16:9", "blog",
        ),
        "wordpress-featured": _preset(
            "WordPress Featured Image",
            "Featured image for WordPress posts and link previews",
            1200, 628, "1.91:1", "blog",
        ),
        # Social
        "instagram-post": _preset(
            "Instagram Post",
            "Square feed post",
            1080, 1080, "1:1", "social",
        ),
        "instagram-portrait": _preset(
            "Instagram Portrait",
            "Portrait feed post",
            1080, 1350, "4:5", "social",
        ),
        "instagram-story": _preset(
            "Instagram Story",
            "Full-screen story or reel cover",
            1080, 1920, "9:16", "social",
        ),
        "twitter-post": _preset(
            "X/Twitter Post",
            "In-stream image for X/Twitter",
            1600, 900, "16:9", "social",
        ),
        "linkedin-post": _preset(
            "LinkedIn Post",
            "Shared image for LinkedIn posts",
            1200, 627, "1.91:1", "social",
        ),
        "facebook-post": _preset(
            "Facebook Post",
            "Shared link or feed image for Facebook",
            1200, 630, "1.91:1", "social",
        ),
        "pinterest-pin": _preset(
            "Pinterest Pin",
            "Standard vertical pin",
            1000, 1500, "2:3", "social",
        ),
        # Video
        "youtube-thumbnail": _preset(
            "YouTube Thumbnail",
            "Video thumbnail",
            1280, 720, "16:9", "video",
        ),
        "youtube-banner": _preset(
            "YouTube Channel Banner",
            "Channel art (safe area is the center 1546x423)",
            2560, 1440, "16:9", "video",
        ),
        # Generic
        "square": _preset("Square", "Generic square image", 1024, 1024, "1:1", "generic"),
        "landscape": _preset("Landscape", "Generic landscape image", 1536, 864, "16:9", "generic"),
        "portrait": _preset("Portrait", "Generic portrait image", 864, 1536, "9:16", "generic"),
        "og-image": _preset(
            "Open Graph Image",
            "Link preview image for og:image tags",
            1200, 630, "1.91:1", "generic",
        ),
    }
)

PRESET_KEYS: tuple[str, ...] = tuple(PLATFORM_PRESETS)


def get_preset(key: str) -> PlatformPreset | None:
    """Return the preset for ``key``, or None if unknown."""
    return PLATFORM_PRESETS.get(key)


def list_presets(category: str | None = None) -> list[tuple[str, PlatformPreset]]:
    """List ``(key, preset)`` pairs, optionally filtered by category."""
    return [
        (key, preset)
        for key, preset in PLATFORM_PRESETS.items()
        if category is None or preset.category == category
    ]
