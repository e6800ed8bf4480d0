"""
Bounding-box normalization.
다양한 형식의 bounding box를 픽셀 사각형으로 정규화합니다.
Models report regions as fractions or pixels, as origin+size or as corners;
everything is reduced to one clamped pixel rectangle here.
"""

import math

from ..config import MIN_CROP_SIZE_PX
from ..schema import BoundingBox, CanonicalRect


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def normalize_bounding_box(
    bbox: BoundingBox,
    image_width: int,
    image_height: int,
    min_size: int = MIN_CROP_SIZE_PX,
) -> CanonicalRect:
    """
    Convert bbox into a pixel rectangle inside a image_width x image_height image.

    When all four values are <= 1 the box is read as fractions of the image.
    A genuine sub-pixel box is therefore indistinguishable from a fractional
    one and is always treated as fractional.

    The result always fits the image and is at least min_size pixels in each
    dimension (or the full dimension, for images smaller than that); boxes
    below the floor are grown and pulled back inside the image edge.
    """
    if bbox.is_corner_format:
        x, y = bbox.x1, bbox.y1
        width, height = bbox.x2 - bbox.x1, bbox.y2 - bbox.y1
    else:
        x, y, width, height = bbox.x, bbox.y, bbox.width, bbox.height

    if x <= 1 and y <= 1 and width <= 1 and height <= 1:
        x = math.floor(x * image_width)
        y = math.floor(y * image_height)
        width = math.floor(width * image_width)
        height = math.floor(height * image_height)

    x = math.floor(_clamp(x, 0, image_width))
    y = math.floor(_clamp(y, 0, image_height))
    width = math.floor(min(width, image_width - x))
    height = math.floor(min(height, image_height - y))

    min_width = min(min_size, image_width)
    min_height = min(min_size, image_height)
    width = max(min_width, width)
    height = max(min_height, height)
    x = min(x, image_width - width)
    y = min(y, image_height - height)

    return CanonicalRect(x=x, y=y, width=width, height=height)
