# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Label OCR field core: vocabulary correction, field correlation and templates."""

from __future__ import annotations

from .batch import FieldOutcome, ImageExtraction, TemplateExtractor, run_batch
from .config import Settings, configure_logging
from .layout import assign_key, correlate_fields, overlap_ratio, scale_box, snapshot_fields, template_regions
from .models import (
    BlockLevel,
    BoundingBox,
    FieldEntry,
    FieldMapping,
    ImageSize,
    MatchResult,
    NormalizedBox,
    OcrConfiguration,
    OcrResult,
    PreviousField,
    Template,
    TextBlock,
)
from .templates import TemplateFormatError, capture_template, load_template, save_template
from .vocabulary import ConfusionTable, MatchOptions, VocabularyMatcher, default_confusions

__version__ = "0.1.0"

__all__ = [
    "BlockLevel",
    "BoundingBox",
    "ConfusionTable",
    "FieldEntry",
    "FieldMapping",
    "FieldOutcome",
    "ImageExtraction",
    "ImageSize",
    "MatchOptions",
    "MatchResult",
    "NormalizedBox",
    "OcrConfiguration",
    "OcrResult",
    "PreviousField",
    "Settings",
    "Template",
    "TemplateExtractor",
    "TemplateFormatError",
    "TextBlock",
    "VocabularyMatcher",
    "assign_key",
    "capture_template",
    "configure_logging",
    "correlate_fields",
    "default_confusions",
    "load_template",
    "overlap_ratio",
    "run_batch",
    "save_template",
    "scale_box",
    "snapshot_fields",
    "template_regions",
]
