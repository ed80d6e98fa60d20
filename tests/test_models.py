# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

import pytest
from pydantic import ValidationError

from labelocr.models import (
    BlockLevel,
    BoundingBox,
    FieldMapping,
    ImageSize,
    MatchResult,
    NormalizedBox,
    OcrConfiguration,
    OcrResult,
    Template,
    TextBlock,
)


def _box(x=0, y=0, width=10, height=10):
    return BoundingBox(x=x, y=y, width=width, height=height)


def test_bounding_box_geometry():
    box = _box(10, 20, 30, 40)
    assert (box.max_x, box.max_y, box.area) == (40, 60, 1200)
    assert (box.center_x, box.center_y) == (25.0, 40.0)
    assert box.contains(10, 20)
    assert not box.contains(40, 60)
    assert box.intersects(_box(35, 55, 10, 10))
    assert not box.intersects(_box(40, 20, 5, 5))
    assert box.expand(5) == _box(5, 15, 40, 50)


def test_bounding_box_rejects_negative_size():
    with pytest.raises(ValidationError):
        BoundingBox(x=0, y=0, width=-1, height=5)


def test_records_are_frozen():
    box = _box()
    with pytest.raises(ValidationError):
        box.x = 3  # type: ignore[misc]
    moved = box.model_copy(update={"x": 3})
    assert moved.x == 3 and box.x == 0


def test_text_block_normalizes_inputs():
    block = TextBlock(text="  S-01 \n", box=_box(), confidence=1.7, level=None)
    assert block.text == "S-01"
    assert block.confidence == 1.0
    assert block.level is BlockLevel.WORD
    assert block.confidence_percent == 100
    assert TextBlock(text=None, box=_box(), confidence=-2).is_empty


def test_ocr_result_summaries():
    blocks = [
        TextBlock(text="S-01", box=_box(), confidence=0.9, level=BlockLevel.LINE),
        TextBlock(text="Mouse", box=_box(), confidence=0.5, level=BlockLevel.WORD),
    ]
    result = OcrResult(text_blocks=blocks)
    assert result.has_text
    assert result.full_text == "S-01 Mouse"
    assert result.average_confidence == pytest.approx(0.7)
    assert result.min_confidence == 0.5
    assert result.max_confidence == 0.9
    assert [b.text for b in result.blocks_above_confidence(0.6)] == ["S-01"]
    assert [b.text for b in result.blocks_by_level(BlockLevel.WORD)] == ["Mouse"]
    assert not OcrResult.empty().has_text
    assert OcrResult.empty().average_confidence == 0.0


def test_ocr_configuration_defaults_and_clamping():
    config = OcrConfiguration(min_confidence=3, language="")
    assert config.min_confidence == 1.0
    assert config.language == "eng"
    assert config.model_dump(by_alias=True)["pageSegMode"] == 3


def test_match_result_flags_and_text():
    exact = MatchResult(matched_value="A1", original_value="a1", edit_distance=0, similarity=1.0)
    fixed = MatchResult(matched_value="PBS_001", original_value="PBS_0O1", edit_distance=0.3, similarity=0.96)
    assert exact.is_exact and not exact.was_corrected
    assert fixed.was_corrected
    assert "exact match" in str(exact)
    assert "'PBS_0O1' -> 'PBS_001'" in str(fixed)


def test_image_size_validity():
    assert ImageSize(width=10, height=5).is_valid
    assert not ImageSize(width=0, height=5).is_valid


def test_template_accepts_camel_case_and_field_names():
    from_file = Template.model_validate(
        {"name": "t", "fieldMappings": [{"fieldIndex": 0, "metadataKey": "Sample_ID", "exampleText": None}]}
    )
    from_code = Template(name="t", field_mappings=[FieldMapping(field_index=0, metadata_key="Sample_ID")])
    assert from_file.field_mappings == from_code.field_mappings
    assert from_file.field_mappings[0].example_text == ""
    assert not from_file.has_bounding_box_data
    assert from_file.dilation_factor == 1.2


def test_template_enabled_mappings():
    template = Template(
        name="t",
        field_mappings=[
            FieldMapping(field_index=0, metadata_key="a"),
            FieldMapping(field_index=1, metadata_key="b", enabled=False),
        ],
    )
    assert [m.metadata_key for m in template.enabled_mappings()] == ["a"]
    assert template.enabled_mapping_count == 1


def test_template_rejects_non_positive_dilation():
    with pytest.raises(ValidationError):
        Template(name="t", dilation_factor=0)


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
def test_normalized_box_rejects_non_finite_values(value):
    with pytest.raises(ValidationError):
        NormalizedBox(x=value, y=0.1, width=0.2, height=0.1)
    with pytest.raises(ValidationError):
        NormalizedBox(x=0.1, y=0.1, width=value, height=0.1)
