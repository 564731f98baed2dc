"""Reconcile a preset's declared geometry with what the provider produced.

Providers only render a fixed set of aspect ratios and pick their own pixel
sizes, so the image that comes back rarely matches a platform preset exactly.
This module classifies the divergence and phrases the advisory that is
attached to the result. It never corrects the image.
"""

from __future__ import annotations

from typing import NamedTuple

from .models import AdvisoryCategory, GeometryAdvisory


class Reconciliation(NamedTuple):
    width: int
    height: int
    advisory: GeometryAdvisory | None


def reconcile(
    requested_aspect: str,
    requested_width: int,
    requested_height: int,
    supports_aspect_natively: bool,
    substituted_aspect: str,
    actual_width: int | None = None,
    actual_height: int | None = None,
) -> Reconciliation:
    """Compare requested and actual geometry.

    Args:
        requested_aspect: Aspect ratio declared by the preset (``W:H``).
        requested_width: Width declared by the preset.
        requested_height: Height declared by the preset.
        supports_aspect_natively: Whether the provider renders
            ``requested_aspect`` directly.
        substituted_aspect: Ratio the provider was asked for instead when
            the requested one is not native.
        actual_width: Width reported by the provider, if any.
        actual_height: Height reported by the provider, if any.

    Returns:
        The resolved ``(width, height)`` and an optional advisory:

        - non-native aspect: requested size, ``native-mismatch`` advisory
        - native aspect, actual size differs: actual size,
          ``dimension-drift`` advisory
        - otherwise: requested size, no advisory
    """
    if not supports_aspect_natively:
        message = (
            f"Note: This preset's aspect ratio ({requested_aspect}) is not natively "
            f"supported by the provider. Image was generated at {substituted_aspect} "
            f"aspect ratio. You may need to crop the image to fit "
            f"{requested_width}x{requested_height}."
        )
        return Reconciliation(
            requested_width,
            requested_height,
            GeometryAdvisory(category=AdvisoryCategory.NATIVE_MISMATCH, message=message),
        )

    width = actual_width if actual_width is not None else requested_width
    height = actual_height if actual_height is not None else requested_height

    if width != requested_width or height != requested_height:
        message = (
            f"Image was generated at {width}x{height}, which differs from the preset's "
            f"{requested_width}x{requested_height}. You may need to resize the image."
        )
        return Reconciliation(
            width,
            height,
            GeometryAdvisory(category=AdvisoryCategory.DIMENSION_DRIFT, message=message),
        )

    return Reconciliation(requested_width, requested_height, None)
