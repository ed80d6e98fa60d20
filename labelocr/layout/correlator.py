# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Carry metadata keys from one reviewed image to the next.

OCR boxes for the same physical field never line up to the pixel between
images, and consecutive images may have different resolutions. Boxes are
therefore compared in image-relative space, each normalized by the size of
the image it came from, and a field inherits the key of the first previous
field it overlaps by at least half of the smaller box.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from ..keys import default_field_key
from ..models import BlockLevel, BoundingBox, FieldEntry, ImageSize, PreviousField, TextBlock
from .geometry import normalize_box, overlap_ratio

logger = logging.getLogger("labelocr.layout")

DEFAULT_OVERLAP_THRESHOLD = 0.5


def assign_key(
    new_box: Optional[BoundingBox],
    new_image_size: ImageSize,
    previous_fields: Sequence[PreviousField],
    default_key: str,
    *,
    threshold: float = DEFAULT_OVERLAP_THRESHOLD,
    prefer_best_overlap: bool = False,
) -> str:
    """Return the key of the previous field matching ``new_box`` or ``default_key``.

    By default the first previous field at or above ``threshold`` wins. With
    ``prefer_best_overlap`` every previous field is scored and the greatest
    overlap wins, earlier fields breaking ties.
    """

    if new_box is None or not previous_fields or not new_image_size.is_valid:
        return default_key

    current = normalize_box(new_box, new_image_size)
    best_key: Optional[str] = None
    best_ratio = -1.0

    for previous in previous_fields:
        if previous.box is None or not previous.image_size.is_valid or not previous.metadata_key:
            continue
        ratio = overlap_ratio(current, normalize_box(previous.box, previous.image_size))
        logger.debug("Comparing with previous field '%s': overlap %.3f", previous.metadata_key, ratio)
        if ratio < threshold:
            continue
        if not prefer_best_overlap:
            return previous.metadata_key
        if ratio > best_ratio:
            best_key, best_ratio = previous.metadata_key, ratio

    return best_key if best_key is not None else default_key


def select_field_blocks(blocks: Iterable[TextBlock]) -> List[TextBlock]:
    """Non-empty line blocks, or non-empty word blocks when there are no lines."""

    blocks = list(blocks)
    lines = [block for block in blocks if block.level == BlockLevel.LINE and not block.is_empty]
    if lines:
        return lines
    return [block for block in blocks if block.level == BlockLevel.WORD and not block.is_empty]


def correlate_fields(
    blocks: Iterable[TextBlock],
    image_size: ImageSize,
    previous_fields: Sequence[PreviousField] = (),
    prefix: str = "OCR_",
    *,
    threshold: float = DEFAULT_OVERLAP_THRESHOLD,
    prefer_best_overlap: bool = False,
) -> List[FieldEntry]:
    """Turn freshly detected blocks into field entries with inherited keys."""

    entries: List[FieldEntry] = []
    for index, block in enumerate(select_field_blocks(blocks)):
        key = assign_key(
            block.box,
            image_size,
            previous_fields,
            default_field_key(index, prefix),
            threshold=threshold,
            prefer_best_overlap=prefer_best_overlap,
        )
        entries.append(FieldEntry(text=block.text, metadata_key=key, confidence=block.confidence, box=block.box))
    return entries


def snapshot_fields(entries: Iterable[FieldEntry], image_size: ImageSize) -> List[PreviousField]:
    """Freeze reviewed entries so they can be compared against the next image."""

    return [
        PreviousField(box=entry.box, metadata_key=entry.metadata_key, image_size=image_size)
        for entry in entries
    ]


__all__ = [
    "DEFAULT_OVERLAP_THRESHOLD",
    "assign_key",
    "correlate_fields",
    "select_field_blocks",
    "snapshot_fields",
]
