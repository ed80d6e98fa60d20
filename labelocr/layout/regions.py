# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Map template field positions back onto a target image.

Template boxes are stored as fractions of the reference image. Each box is
grown about its center by the template's dilation factor to absorb small
registration drift, converted to pixels for the target image, and clamped to
the image bounds.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..models import BoundingBox, FieldMapping, NormalizedBox, Template

logger = logging.getLogger("labelocr.layout")

MIN_REGION_SIZE = 5
DEFAULT_DILATION = 1.2


def scale_box(
    norm_box: NormalizedBox,
    target_width: int,
    target_height: int,
    dilation: float = DEFAULT_DILATION,
) -> Optional[BoundingBox]:
    """Return the pixel crop for ``norm_box`` on a ``target_width`` x ``target_height`` image.

    ``x``/``y`` are clamped to zero first; width and height are then clamped
    against the remaining space from that (possibly shifted) origin. A box
    pushed off the left or top edge therefore keeps its full size and reaches
    further on the opposite side. Returns ``None`` when the result is narrower
    or shorter than :data:`MIN_REGION_SIZE` pixels.
    """

    if dilation <= 0:
        raise ValueError(f"dilation must be positive, got {dilation}")
    if target_width <= 0 or target_height <= 0:
        return None

    center_x, center_y = norm_box.center
    width = norm_box.width * dilation
    height = norm_box.height * dilation

    x = int(round((center_x - width / 2.0) * target_width))
    y = int(round((center_y - height / 2.0) * target_height))
    w = int(round(width * target_width))
    h = int(round(height * target_height))

    x = max(0, x)
    y = max(0, y)
    w = min(w, target_width - x)
    h = min(h, target_height - y)

    if w < MIN_REGION_SIZE or h < MIN_REGION_SIZE:
        return None
    return BoundingBox(x=x, y=y, width=w, height=h)


@dataclass(frozen=True)
class FieldRegion:
    mapping: FieldMapping
    box: BoundingBox


def template_regions(template: Template, target_width: int, target_height: int) -> List[FieldRegion]:
    """Pixel regions for every enabled, positioned mapping, in template order."""

    regions: List[FieldRegion] = []
    for mapping in template.enabled_mappings():
        if mapping.normalized_box is None:
            continue
        box = scale_box(mapping.normalized_box, target_width, target_height, template.dilation_factor)
        if box is None:
            logger.debug(
                "Skipping field %d (%s): region too small on %dx%d image",
                mapping.field_index,
                mapping.metadata_key,
                target_width,
                target_height,
            )
            continue
        regions.append(FieldRegion(mapping=mapping, box=box))
    return regions


__all__ = ["DEFAULT_DILATION", "MIN_REGION_SIZE", "FieldRegion", "scale_box", "template_regions"]
