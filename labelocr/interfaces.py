# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Interfaces for collaborators that live outside this package."""
from __future__ import annotations

from typing import Protocol

from .models import OcrConfiguration, OcrResult


class OcrEngine(Protocol):
    """Detect text on an image or region crop."""

    def process(self, image: object, configuration: OcrConfiguration) -> OcrResult:
        ...
