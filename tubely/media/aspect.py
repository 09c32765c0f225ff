from __future__ import annotations

from enum import Enum
from typing import Optional


class AspectClass(str, Enum):
    landscape = "landscape"
    portrait = "portrait"
    other = "other"


LANDSCAPE_BAND = (1.59, 1.82)
PORTRAIT_BAND = (0.5, 0.7)


def classify_ratio(ratio: float) -> AspectClass:
    """Bucket a width/height ratio. Band edges are inclusive."""
    if LANDSCAPE_BAND[0] <= ratio <= LANDSCAPE_BAND[1]:
        return AspectClass.landscape
    if PORTRAIT_BAND[0] <= ratio <= PORTRAIT_BAND[1]:
        return AspectClass.portrait
    return AspectClass.other


def classify_dimensions(width: Optional[int], height: Optional[int]) -> AspectClass:
    """Classify stream dimensions, falling back to ``other`` for missing or non-positive values."""
    if not width or not height or width <= 0 or height <= 0:
        return AspectClass.other
    return classify_ratio(width / height)


__all__ = ["AspectClass", "classify_ratio", "classify_dimensions", "LANDSCAPE_BAND", "PORTRAIT_BAND"]
