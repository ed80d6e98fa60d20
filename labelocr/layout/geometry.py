# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Conversions between pixel and image-relative boxes."""
from __future__ import annotations

from ..models import BoundingBox, ImageSize, NormalizedBox


def normalize_box(box: BoundingBox, image_size: ImageSize) -> NormalizedBox:
    """Express ``box`` as fractions of ``image_size``."""

    if not image_size.is_valid:
        raise ValueError(f"image size must be positive, got {image_size.width}x{image_size.height}")
    width = float(image_size.width)
    height = float(image_size.height)
    return NormalizedBox(
        x=box.x / width,
        y=box.y / height,
        width=box.width / width,
        height=box.height / height,
    )


def intersection_area(a: NormalizedBox, b: NormalizedBox) -> float:
    left = max(a.x, b.x)
    top = max(a.y, b.y)
    right = min(a.x + a.width, b.x + b.width)
    bottom = min(a.y + a.height, b.y + b.height)
    return max(0.0, right - left) * max(0.0, bottom - top)


def overlap_ratio(a: NormalizedBox, b: NormalizedBox) -> float:
    """Intersection area relative to the smaller of the two boxes.

    Unlike IoU this reaches 1.0 when one box sits entirely inside the other.
    Degenerate (zero-area) boxes never overlap.
    """

    smaller = min(a.width * a.height, b.width * b.height)
    if smaller <= 0:
        return 0.0
    return intersection_area(a, b) / smaller


__all__ = ["intersection_area", "normalize_box", "overlap_ratio"]
