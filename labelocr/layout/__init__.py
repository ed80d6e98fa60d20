# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Geometry for correlating fields across images and reapplying templates."""

from .correlator import (
    DEFAULT_OVERLAP_THRESHOLD,
    assign_key,
    correlate_fields,
    select_field_blocks,
    snapshot_fields,
)
from .geometry import intersection_area, normalize_box, overlap_ratio
from .regions import DEFAULT_DILATION, MIN_REGION_SIZE, FieldRegion, scale_box, template_regions

__all__ = [
    "DEFAULT_DILATION",
    "DEFAULT_OVERLAP_THRESHOLD",
    "FieldRegion",
    "MIN_REGION_SIZE",
    "assign_key",
    "correlate_fields",
    "intersection_area",
    "normalize_box",
    "overlap_ratio",
    "scale_box",
    "select_field_blocks",
    "snapshot_fields",
    "template_regions",
]
