# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Mock OCR engine for tests and dry runs."""
from __future__ import annotations

from threading import Lock
from typing import Dict, List, Optional, Tuple

from .interfaces import OcrEngine
from .models import BlockLevel, BoundingBox, OcrConfiguration, OcrResult, TextBlock


class MockOcrEngine(OcrEngine):
    """Answer with canned text keyed by the size of the image it receives.

    Region crops differ in size, which makes the response independent of the
    order in which concurrent calls arrive. Sizes listed in ``failures``
    raise ``RuntimeError``.
    """

    def __init__(
        self,
        responses: Optional[Dict[Tuple[int, int], str]] = None,
        failures: Tuple[Tuple[int, int], ...] = (),
        default_text: str = "",
        confidence: float = 0.9,
    ) -> None:
        self.responses = dict(responses or {})
        self.failures = set(failures)
        self.default_text = default_text
        self.confidence = confidence
        self.calls: List[Tuple[Tuple[int, int], OcrConfiguration]] = []
        self._lock = Lock()

    def process(self, image: object, configuration: OcrConfiguration) -> OcrResult:
        size = tuple(getattr(image, "size", (0, 0)))
        with self._lock:
            self.calls.append((size, configuration))  # type: ignore[arg-type]
        if size in self.failures:
            raise RuntimeError(f"mock OCR failure for region {size[0]}x{size[1]}")

        text = self.responses.get(size, self.default_text)  # type: ignore[arg-type]
        if not text:
            return OcrResult.empty()
        width, height = size
        blocks = [
            TextBlock(
                text=text,
                box=BoundingBox(x=0, y=0, width=width, height=height),
                confidence=self.confidence,
                level=BlockLevel.LINE,
            )
        ]
        return OcrResult(text_blocks=blocks, image_width=width, image_height=height)

