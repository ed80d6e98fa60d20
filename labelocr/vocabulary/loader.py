# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Vocabulary ingestion from loosely structured spreadsheets and text lists.

Only the first column of delimited input is kept. Rows whose value comes out
empty are dropped without complaint so hand-edited exports load cleanly.
"""
from __future__ import annotations

import csv
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger("labelocr.vocabulary")

HEADER_KEYWORDS = (
    "sample",
    "name",
    "id",
    "code",
    "label",
    "value",
    "specimen",
    "patient",
    "slide",
    "case",
    "date",
)


class VocabularyFormat(str, Enum):
    CSV = "csv"
    TSV = "tsv"
    LINES = "lines"


def looks_like_header(line: str) -> bool:
    """Best-effort guess that ``line`` is a column header row."""

    lowered = line.lower()
    return any(keyword in lowered for keyword in HEADER_KEYWORDS)


def _csv_first_column(line: str) -> str:
    for row in csv.reader([line], skipinitialspace=True):
        return row[0].strip() if row else ""
    return ""


def _tsv_first_column(line: str) -> str:
    return line.split("\t", 1)[0].strip()


def format_for_path(path: Union[str, Path]) -> VocabularyFormat:
    suffix = Path(path).suffix.lower()
    if suffix == ".csv":
        return VocabularyFormat.CSV
    if suffix in {".tsv", ".txt"}:
        return VocabularyFormat.TSV
    return VocabularyFormat.LINES


def load_vocabulary(source: str, fmt: Union[VocabularyFormat, str] = VocabularyFormat.LINES) -> List[str]:
    """Parse ``source`` text into an ordered list of vocabulary values.

    Delimited formats drop the first non-blank line when it looks like a
    header; the plain line format keeps every line.
    """

    fmt = VocabularyFormat(fmt)
    values: List[str] = []
    first = True

    for raw in source.splitlines():
        line = raw.strip()
        if not line:
            continue

        if first:
            first = False
            if fmt is not VocabularyFormat.LINES and looks_like_header(line):
                logger.debug("Skipping header row: %s", line)
                continue

        if fmt is VocabularyFormat.CSV:
            value = _csv_first_column(line)
        elif fmt is VocabularyFormat.TSV:
            value = _tsv_first_column(line)
        else:
            value = line

        if value:
            values.append(value)

    return values


def load_vocabulary_file(
    path: Union[str, Path],
    fmt: Optional[Union[VocabularyFormat, str]] = None,
    encoding: str = "utf-8",
) -> List[str]:
    """Read a vocabulary file; the format follows the suffix unless given."""

    path = Path(path)
    resolved = VocabularyFormat(fmt) if fmt is not None else format_for_path(path)
    # tolerate a leading BOM
    if encoding.lower().replace("_", "-") == "utf-8":
        encoding = "utf-8-sig"
    values = load_vocabulary(path.read_text(encoding=encoding), resolved)
    logger.info("Loaded %d vocabulary entries from: %s", len(values), path.name)
    return values


__all__ = [
    "HEADER_KEYWORDS",
    "VocabularyFormat",
    "format_for_path",
    "load_vocabulary",
    "load_vocabulary_file",
    "looks_like_header",
]
