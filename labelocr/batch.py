# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Apply a template to label images and collect per-field text.

With fixed positions, each template field is cropped from the image and sent
to the OCR engine as an independent task. All tasks for an image are joined
before the image counts as done, and results are merged by metadata key in
template order because tasks finish in no particular order. One failing
region is reported against its own key and does not affect the others.

Templates without stored boxes fall back to whole-image OCR and assign the
detected lines to fields by index.
"""
from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field, replace
from threading import Event
from typing import Dict, Iterable, List, Optional, Tuple

from PIL import Image

from .interfaces import OcrEngine
from .layout.regions import FieldRegion, template_regions
from .models import BoundingBox, OcrConfiguration, PageSegMode, Template
from .templates import values_by_field_index
from .vocabulary.matcher import MatchOptions, VocabularyMatcher

logger = logging.getLogger("labelocr.batch")

FIXED_POSITION_MIN_CONFIDENCE = 0.1


def fixed_position_configuration(base: Optional[OcrConfiguration] = None) -> OcrConfiguration:
    """Engine settings for small single-field crops."""

    base = base or OcrConfiguration()
    return base.model_copy(
        update={
            "page_seg_mode": PageSegMode.SINGLE_BLOCK,
            "min_confidence": FIXED_POSITION_MIN_CONFIDENCE,
        }
    )


@dataclass(frozen=True)
class FieldOutcome:
    metadata_key: str
    field_index: int
    box: Optional[BoundingBox]
    text: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ImageExtraction:
    image_id: str
    values: Dict[str, str] = field(default_factory=dict)
    outcomes: Tuple[FieldOutcome, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def errors(self) -> Dict[str, str]:
        return {outcome.metadata_key: outcome.error for outcome in self.outcomes if outcome.error is not None}


class TemplateExtractor:
    """Run OCR on the regions a template defines for one image at a time."""

    def __init__(
        self,
        engine: OcrEngine,
        max_workers: int = 4,
        configuration: Optional[OcrConfiguration] = None,
    ) -> None:
        self.engine = engine
        self.max_workers = max(1, int(max_workers))
        self.configuration = configuration

    def extract(self, image: Image.Image, template: Template, image_id: str = "") -> ImageExtraction:
        if template.use_fixed_positions and template.has_bounding_box_data:
            return self._extract_fixed(image, template, image_id)
        return self._extract_by_index(image, template, image_id)

    def _recognize(self, crop: Image.Image, configuration: OcrConfiguration) -> str:
        result = self.engine.process(crop, configuration)
        return " ".join(block.text for block in result.text_blocks if block.text).strip()

    def _extract_fixed(self, image: Image.Image, template: Template, image_id: str) -> ImageExtraction:
        width, height = image.size
        regions: List[FieldRegion] = template_regions(template, width, height)
        configuration = fixed_position_configuration(self.configuration or template.configuration)
        if not regions:
            logger.info("No usable template regions on %s (%dx%d)", image_id or "image", width, height)
            return ImageExtraction(image_id=image_id)

        # Crop up front; a shared PIL image is not safe to load from several threads.
        crops = [image.crop((r.box.x, r.box.y, r.box.max_x, r.box.max_y)) for r in regions]

        workers = min(self.max_workers, len(regions))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self._recognize, crop, configuration) for crop in crops]
            concurrent.futures.wait(futures)

        values: Dict[str, str] = {}
        outcomes: List[FieldOutcome] = []
        for region, future in zip(regions, futures):
            key = region.mapping.metadata_key
            try:
                text = future.result()
            except Exception as exc:
                logger.warning(
                    "OCR failed for field %d (%s) on %s: %s",
                    region.mapping.field_index,
                    key,
                    image_id or "image",
                    exc,
                )
                outcomes.append(
                    FieldOutcome(key, region.mapping.field_index, region.box, error=str(exc) or type(exc).__name__)
                )
                continue
            values[key] = text
            outcomes.append(FieldOutcome(key, region.mapping.field_index, region.box, text=text))

        return ImageExtraction(image_id=image_id, values=values, outcomes=tuple(outcomes))

    def _extract_by_index(self, image: Image.Image, template: Template, image_id: str) -> ImageExtraction:
        configuration = self.configuration or template.configuration or OcrConfiguration()
        result = self.engine.process(image, configuration)
        values = values_by_field_index(template, result.text_blocks)
        outcomes = tuple(
            FieldOutcome(mapping.metadata_key, mapping.field_index, None, text=values[mapping.metadata_key])
            for mapping in template.enabled_mappings()
        )
        return ImageExtraction(image_id=image_id, values=values, outcomes=outcomes)


def run_batch(
    images: Iterable[Tuple[str, Image.Image]],
    template: Template,
    engine: OcrEngine,
    *,
    cancel_event: Optional[Event] = None,
    matcher: Optional[VocabularyMatcher] = None,
    match_options: Optional[MatchOptions] = None,
    max_workers: int = 4,
) -> List[ImageExtraction]:
    """Extract ``template`` fields from each ``(image_id, image)`` pair.

    ``cancel_event`` is checked before each image; an image already being
    processed runs to completion. When ``matcher`` holds a vocabulary, each
    image's values are corrected against it. An image whose whole-image OCR
    fails is recorded with ``error`` set and the batch moves on.
    """

    extractor = TemplateExtractor(engine, max_workers=max_workers)
    results: List[ImageExtraction] = []

    for image_id, image in images:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Batch cancelled after %d images", len(results))
            break
        try:
            extraction = extractor.extract(image, template, image_id)
        except Exception as exc:
            logger.error("Error processing image %s: %s", image_id, exc)
            results.append(ImageExtraction(image_id=image_id, error=str(exc) or type(exc).__name__))
            continue
        if matcher is not None and matcher.has_vocabulary:
            extraction = replace(extraction, values=matcher.correct_all(extraction.values, match_options))
        results.append(extraction)

    return results


__all__ = [
    "FIXED_POSITION_MIN_CONFIDENCE",
    "FieldOutcome",
    "ImageExtraction",
    "TemplateExtractor",
    "fixed_position_configuration",
    "run_batch",
]
