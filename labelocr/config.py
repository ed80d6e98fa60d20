# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Environment-driven settings and logging setup.

Nothing here runs at import time. Callers build a :class:`Settings` with
:meth:`Settings.from_env` and pass the values they need explicitly.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional

from .keys import DEFAULT_PREFIX
from .layout.correlator import DEFAULT_OVERLAP_THRESHOLD
from .vocabulary.matcher import MatchOptions

_ENV_PREFIX = "LABELOCR_"


def _env_str(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name)
    if raw is None:
        return default
    raw = raw.strip()
    return raw or default


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None:
        return default
    raw = raw.strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_truthy(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    max_edit_distance: float = 2.0
    min_similarity: float = 0.6
    case_insensitive: bool = True
    ocr_weights: bool = False
    overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD
    # None keeps the dilation stored in each template.
    dilation: Optional[float] = None
    metadata_prefix: str = DEFAULT_PREFIX
    log_level: str = "WARNING"
    log_format: str = "text"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        p = _ENV_PREFIX
        dilation = _env_float(env, p + "DILATION", 0.0)
        return cls(
            max_edit_distance=max(0.0, _env_float(env, p + "MAX_EDIT_DISTANCE", 2.0)),
            min_similarity=min(1.0, max(0.0, _env_float(env, p + "MIN_SIMILARITY", 0.6))),
            case_insensitive=_env_truthy(env, p + "CASE_INSENSITIVE", True),
            ocr_weights=_env_truthy(env, p + "OCR_WEIGHTS", False),
            overlap_threshold=_env_float(env, p + "OVERLAP_THRESHOLD", DEFAULT_OVERLAP_THRESHOLD),
            dilation=dilation if dilation > 0 else None,
            metadata_prefix=_env_str(env, p + "METADATA_PREFIX", DEFAULT_PREFIX),
            log_level=_env_str(env, p + "LOG_LEVEL", "WARNING").upper(),
            log_format=_env_str(env, p + "LOG_FORMAT", "text").lower(),
        )

    def match_options(self) -> MatchOptions:
        return MatchOptions(
            max_edit_distance=self.max_edit_distance,
            min_similarity=self.min_similarity,
            case_insensitive=self.case_insensitive,
            weighted=self.ocr_weights,
        )


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).replace(microsecond=0).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str = "WARNING", fmt: str = "text") -> logging.Logger:
    """Attach a stderr handler to the ``labelocr`` logger once and set its level."""

    logger = logging.getLogger("labelocr")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        if fmt == "json":
            handler.setFormatter(_JsonFormatter())
        else:
            handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.propagate = False
    return logger


__all__ = ["Settings", "configure_logging"]
