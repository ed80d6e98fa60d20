# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Data models shared by the label field subsystem.

Records are frozen pydantic models so every pipeline stage hands the next one
an immutable snapshot. Edits go through ``model_copy(update=...)``. Template
records serialize with the camelCase keys used by saved template files while
still accepting the snake_case field names on input.
"""
from __future__ import annotations

import time
from enum import Enum, IntEnum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class _Record(BaseModel):
    """Frozen model whose JSON form uses camelCase keys."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class BoundingBox(_Frozen):
    """Axis-aligned box in pixel coordinates, origin top-left."""

    x: int
    y: int
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)

    @property
    def max_x(self) -> int:
        return self.x + self.width

    @property
    def max_y(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2.0

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2.0

    def contains(self, px: int, py: int) -> bool:
        return self.x <= px < self.max_x and self.y <= py < self.max_y

    def intersects(self, other: "BoundingBox") -> bool:
        return (
            self.x < other.max_x
            and self.max_x > other.x
            and self.y < other.max_y
            and self.max_y > other.y
        )

    def expand(self, margin: int) -> "BoundingBox":
        return BoundingBox(
            x=self.x - margin,
            y=self.y - margin,
            width=self.width + 2 * margin,
            height=self.height + 2 * margin,
        )


class NormalizedBox(_Frozen):
    """Box expressed as fractions of the image it was captured on.

    The box does not remember which image that was; callers keep track of the
    reference dimensions themselves.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    x: float
    y: float
    width: float = Field(..., ge=0.0)
    height: float = Field(..., ge=0.0)

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


class ImageSize(_Frozen):
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)

    @property
    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0


class BlockLevel(str, Enum):
    """Segmentation level reported by the OCR engine."""

    WORD = "word"
    LINE = "line"
    PARAGRAPH = "paragraph"
    BLOCK = "block"


class TextBlock(_Frozen):
    """A detected text region with its location and confidence."""

    text: str = ""
    box: BoundingBox
    confidence: float = 0.0
    level: BlockLevel = BlockLevel.WORD

    @field_validator("text", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> str:
        return str(value).strip() if value is not None else ""

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: object) -> float:
        return max(0.0, min(1.0, float(value)))  # type: ignore[arg-type]

    @field_validator("level", mode="before")
    @classmethod
    def _default_level(cls, value: object) -> object:
        return BlockLevel.WORD if value is None else value

    @property
    def is_empty(self) -> bool:
        return not self.text

    @property
    def confidence_percent(self) -> int:
        return int(round(self.confidence * 100))

    def meets_confidence(self, threshold: float) -> bool:
        return self.confidence >= threshold


class OcrResult(_Frozen):
    """Output of one OCR engine call on an image or region."""

    text_blocks: List[TextBlock] = Field(default_factory=list)
    processing_time_ms: int = Field(0, ge=0)
    image_width: int = Field(0, ge=0)
    image_height: int = Field(0, ge=0)
    detected_orientation: int = 0

    @classmethod
    def empty(cls) -> "OcrResult":
        return cls()

    @property
    def has_text(self) -> bool:
        return bool(self.text_blocks)

    @property
    def full_text(self) -> str:
        return " ".join(block.text for block in self.text_blocks if block.text)

    def blocks_above_confidence(self, min_confidence: float) -> List[TextBlock]:
        return [block for block in self.text_blocks if block.meets_confidence(min_confidence)]

    def blocks_by_level(self, level: BlockLevel) -> List[TextBlock]:
        return [block for block in self.text_blocks if block.level == level]

    @property
    def average_confidence(self) -> float:
        if not self.text_blocks:
            return 0.0
        return sum(block.confidence for block in self.text_blocks) / len(self.text_blocks)

    @property
    def min_confidence(self) -> float:
        return min((block.confidence for block in self.text_blocks), default=0.0)

    @property
    def max_confidence(self) -> float:
        return max((block.confidence for block in self.text_blocks), default=0.0)


class PageSegMode(IntEnum):
    """Tesseract page segmentation modes."""

    OSD_ONLY = 0
    AUTO_OSD = 1
    AUTO = 3
    SINGLE_COLUMN = 4
    SINGLE_BLOCK_VERT = 5
    SINGLE_BLOCK = 6
    SINGLE_LINE = 7
    SINGLE_WORD = 8
    CIRCLE_WORD = 9
    SINGLE_CHAR = 10
    SPARSE_TEXT = 11
    SPARSE_TEXT_OSD = 12
    RAW_LINE = 13


class EngineMode(IntEnum):
    LEGACY = 0
    LSTM_ONLY = 1
    COMBINED = 2
    DEFAULT = 3


class OcrConfiguration(_Record):
    """Snapshot of the OCR engine settings a template was captured with."""

    page_seg_mode: PageSegMode = PageSegMode.AUTO
    engine_mode: EngineMode = EngineMode.LSTM_ONLY
    language: str = "eng"
    min_confidence: float = 0.5
    enable_preprocessing: bool = True
    auto_rotate: bool = True
    enhance_contrast: bool = True
    detect_orientation: bool = True

    @field_validator("language", mode="before")
    @classmethod
    def _default_language(cls, value: object) -> object:
        return value or "eng"

    @field_validator("min_confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: object) -> float:
        return max(0.0, min(1.0, float(value)))  # type: ignore[arg-type]


class MatchResult(_Frozen):
    """Outcome of matching one OCR string against a vocabulary."""

    matched_value: str
    original_value: str
    edit_distance: float = Field(..., ge=0.0)
    similarity: float

    @property
    def is_exact(self) -> bool:
        return self.edit_distance == 0

    @property
    def was_corrected(self) -> bool:
        return self.edit_distance > 0

    def __str__(self) -> str:
        if self.is_exact:
            return f"'{self.matched_value}' (exact match)"
        return (
            f"'{self.original_value}' -> '{self.matched_value}' "
            f"(distance={self.edit_distance:.2f}, {self.similarity * 100:.0f}% similar)"
        )


class FieldEntry(_Frozen):
    """A reviewed field on the image currently being edited."""

    text: str = ""
    metadata_key: str
    confidence: float = 1.0
    box: Optional[BoundingBox] = None


class PreviousField(_Frozen):
    """A field kept from the previously reviewed image.

    The image size travels with the box because consecutive images may have
    been scanned at different resolutions.
    """

    box: Optional[BoundingBox]
    metadata_key: str
    image_size: ImageSize


class FieldMapping(_Record):
    field_index: int = Field(..., ge=0)
    metadata_key: str
    example_text: str = ""
    enabled: bool = True
    normalized_box: Optional[NormalizedBox] = None

    @field_validator("example_text", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def has_box(self) -> bool:
        return self.normalized_box is not None

    def __str__(self) -> str:
        return f"Field {self.field_index} -> {self.metadata_key} (example: '{self.example_text}')"


def _now_millis() -> int:
    return int(time.time() * 1000)


class Template(_Record):
    """Reusable field positions and metadata keys captured from one image."""

    name: str
    description: Optional[str] = None
    field_mappings: List[FieldMapping] = Field(default_factory=list)
    configuration: Optional[OcrConfiguration] = None
    use_fixed_positions: bool = False
    dilation_factor: float = Field(1.2, gt=0.0)
    created_timestamp: int = Field(default_factory=_now_millis)

    @property
    def has_bounding_box_data(self) -> bool:
        return any(mapping.has_box for mapping in self.field_mappings)

    def enabled_mappings(self) -> List[FieldMapping]:
        return [mapping for mapping in self.field_mappings if mapping.enabled]

    @property
    def enabled_mapping_count(self) -> int:
        return len(self.enabled_mappings())

    def __str__(self) -> str:
        return f"Template[name='{self.name}', mappings={len(self.field_mappings)}]"


__all__ = [
    "BlockLevel",
    "BoundingBox",
    "EngineMode",
    "FieldEntry",
    "FieldMapping",
    "ImageSize",
    "MatchResult",
    "NormalizedBox",
    "OcrConfiguration",
    "OcrResult",
    "PageSegMode",
    "PreviousField",
    "Template",
    "TextBlock",
]
