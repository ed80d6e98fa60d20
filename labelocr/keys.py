# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Rules for metadata keys written by label OCR."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

MAX_KEY_LENGTH = 128
DEFAULT_PREFIX = "OCR_"

_VALID_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
_INVALID_CHARS_RE = re.compile(r"[^A-Za-z0-9_-]")

RESERVED_KEYS = frozenset(
    key.lower()
    for key in (
        "name",
        "imageName",
        "imageId",
        "id",
        "path",
        "uri",
        "description",
        "project",
        "projectName",
        "projectPath",
        "server",
        "serverPath",
        "serverType",
        "pixelWidth",
        "pixelHeight",
        "pixelWidthMicrons",
        "pixelHeightMicrons",
        "pixelSizeMicrons",
        "timepoint",
        "zPosition",
        "width",
        "height",
        "nChannels",
        "nZSlices",
        "nTimepoints",
        "bitDepth",
        "imageType",
        "dateCreated",
        "dateModified",
        "owner",
        "version",
    )
)


@dataclass(frozen=True)
class KeyValidation:
    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


def is_reserved_key(key: Optional[str]) -> bool:
    return key is not None and key.lower() in RESERVED_KEYS


def validate_key(key: Optional[str]) -> KeyValidation:
    if key is None or not key.strip():
        return KeyValidation(False, "Metadata key cannot be empty")
    key = key.strip()
    if len(key) > MAX_KEY_LENGTH:
        return KeyValidation(False, f"Metadata key exceeds maximum length of {MAX_KEY_LENGTH} characters")
    if is_reserved_key(key):
        return KeyValidation(False, f"'{key}' is a reserved key and cannot be used for OCR metadata")
    if not _VALID_KEY_RE.match(key):
        return KeyValidation(
            False,
            f"'{key}' is not a valid metadata key. Keys must start with a letter or underscore "
            "and contain only letters, numbers, underscores, and hyphens",
        )
    return KeyValidation(True)


def sanitize_key(proposed: Optional[str]) -> Optional[str]:
    """Coerce ``proposed`` into a valid key, or ``None`` if nothing usable remains."""

    if proposed is None or not proposed.strip():
        return None
    key = proposed.strip()
    for char in " ./\\:":
        key = key.replace(char, "_")
    key = _INVALID_CHARS_RE.sub("", key)
    if not key:
        return None
    if not (key[0].isalpha() or key[0] == "_"):
        key = "ocr_" + key
    key = key[:MAX_KEY_LENGTH]
    if is_reserved_key(key):
        key = "ocr_" + key
    return key if validate_key(key) else None


def suggest_alternative(reserved_key: Optional[str]) -> str:
    if reserved_key is None:
        return "ocr_field"
    for prefix in ("ocr_", "label_"):
        candidate = prefix + reserved_key
        if validate_key(candidate):
            return candidate
    return "custom_" + reserved_key


def default_field_key(index: int, prefix: str = DEFAULT_PREFIX) -> str:
    """Sequential placeholder key, e.g. ``OCR_field_3``."""

    return f"{prefix}field_{index}"


__all__ = [
    "DEFAULT_PREFIX",
    "KeyValidation",
    "MAX_KEY_LENGTH",
    "RESERVED_KEYS",
    "default_field_key",
    "is_reserved_key",
    "sanitize_key",
    "suggest_alternative",
    "validate_key",
]
