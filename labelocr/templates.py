# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Capture, persist and reuse field templates.

A template records, for each reviewed field, its metadata key, an example of
its text, and its box normalized against the reference image. Saved files use
the camelCase record layout::

    {"name": ..., "description": ..., "fieldMappings": [{"fieldIndex": 0,
     "metadataKey": ..., "exampleText": ..., "enabled": true,
     "normalizedBox": {"x": ..., "y": ..., "width": ..., "height": ...}}],
     "configuration": {...}, "useFixedPositions": true,
     "dilationFactor": 1.2, "createdTimestamp": 1700000000000}
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from .layout.correlator import select_field_blocks
from .layout.geometry import normalize_box
from .layout.regions import DEFAULT_DILATION
from .models import FieldEntry, FieldMapping, ImageSize, OcrConfiguration, Template, TextBlock

logger = logging.getLogger("labelocr.templates")


class TemplateFormatError(ValueError):
    """Raised when a template file cannot be parsed into a :class:`Template`."""


def capture_template(
    name: str,
    entries: Sequence[FieldEntry],
    image_size: ImageSize,
    configuration: Optional[OcrConfiguration] = None,
    description: Optional[str] = None,
    dilation_factor: float = DEFAULT_DILATION,
) -> Template:
    """Build a template from the reviewed fields of one reference image."""

    if not image_size.is_valid:
        raise ValueError(f"image size must be positive, got {image_size.width}x{image_size.height}")

    mappings = [
        FieldMapping(
            field_index=index,
            metadata_key=entry.metadata_key,
            example_text=entry.text,
            normalized_box=normalize_box(entry.box, image_size) if entry.box is not None else None,
        )
        for index, entry in enumerate(entries)
    ]
    return Template(
        name=name,
        description=description,
        field_mappings=mappings,
        configuration=configuration,
        use_fixed_positions=any(mapping.has_box for mapping in mappings),
        dilation_factor=dilation_factor,
    )


def template_to_json(template: Template) -> str:
    return template.model_dump_json(by_alias=True, indent=2)


def template_from_json(payload: Union[str, bytes]) -> Template:
    try:
        return Template.model_validate_json(payload)
    except ValidationError as exc:
        raise TemplateFormatError(f"Invalid template: {exc}") from exc


def save_template(template: Template, path: Union[str, Path]) -> Path:
    """Write ``template`` to ``path`` through a temporary sibling file.

    The target is only replaced once the new content is fully on disk, so an
    existing template survives a failed save.
    """

    path = Path(path)
    payload = template_to_json(template)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(payload + "\n", encoding="utf-8")
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    logger.info("Saved template '%s' to: %s", template.name, path)
    return path


def load_template(path: Union[str, Path]) -> Template:
    path = Path(path)
    template = template_from_json(path.read_text(encoding="utf-8"))
    logger.info("Loaded template '%s' from: %s", template.name, path)
    return template


def values_by_field_index(template: Template, blocks: Iterable[TextBlock]) -> Dict[str, str]:
    """Assign detected text to enabled mappings by position in reading order.

    Used for templates without stored boxes: the n-th detected line (or word,
    if the engine reported no lines) fills the mapping whose ``field_index``
    is n. Mappings beyond the detected fields get an empty string.
    """

    texts: List[str] = [block.text for block in select_field_blocks(blocks)]
    values: Dict[str, str] = {}
    for mapping in template.enabled_mappings():
        index = mapping.field_index
        values[mapping.metadata_key] = texts[index] if index < len(texts) else ""
    return values


__all__ = [
    "TemplateFormatError",
    "capture_template",
    "load_template",
    "save_template",
    "template_from_json",
    "template_to_json",
    "values_by_field_index",
]
