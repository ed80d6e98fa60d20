# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 labelocr contributors

"""Command-line access to vocabulary matching, field correlation and templates.

Every subcommand prints a single JSON document to stdout so results can be
piped into other tools. Matching thresholds default to the ``LABELOCR_*``
environment settings and can be overridden per call.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from .config import Settings, configure_logging
from .keys import sanitize_key, suggest_alternative, validate_key, is_reserved_key
from .layout.correlator import correlate_fields
from .layout.regions import DEFAULT_DILATION, template_regions
from .models import FieldEntry, ImageSize, PreviousField, TextBlock
from .templates import capture_template, load_template, save_template
from .vocabulary.loader import load_vocabulary_file
from .vocabulary.matcher import MatchOptions, correct_all, find_all_matches, find_best_match


class _KeyValueAction(argparse.Action):
    """Collect ``KEY=VALUE`` pairs into an ordered dictionary."""

    def __call__(self, parser, namespace, values, option_string=None):  # type: ignore[override]
        parsed: Dict[str, str] = {}
        for value in values:
            if "=" not in value:
                raise argparse.ArgumentError(self, "Expected KEY=VALUE pairs")
            key, raw = value.split("=", 1)
            parsed[key] = raw
        setattr(namespace, self.dest, parsed)


def _add_match_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--vocab", required=True, help="CSV, TSV/TXT or line list of valid values")
    parser.add_argument("--weighted", action="store_true", default=None, help="Use OCR confusion weights")
    parser.add_argument("--case-sensitive", action="store_true", help="Compare case-sensitively")
    parser.add_argument("--max-distance", type=float, help="Maximum edit distance")
    parser.add_argument("--min-similarity", type=float, help="Minimum similarity (0-1)")


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="labelocr", description=__doc__)
    parser.add_argument("--log-level", help="Logging level (defaults to LABELOCR_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    match = sub.add_parser("match", help="Find the closest vocabulary value for TEXT")
    match.add_argument("text")
    _add_match_flags(match)
    match.add_argument("--all", type=int, metavar="N", dest="max_results", help="Return up to N ranked matches")

    correct = sub.add_parser("correct", help="Correct KEY=VALUE fields against a vocabulary")
    correct.add_argument("fields", nargs="+", action=_KeyValueAction, metavar="KEY=VALUE")
    _add_match_flags(correct)

    regions = sub.add_parser("regions", help="Pixel crops of a template on a WIDTH x HEIGHT image")
    regions.add_argument("--template", required=True)
    regions.add_argument("--width", type=int, required=True)
    regions.add_argument("--height", type=int, required=True)
    regions.add_argument("--dilation", type=float, help="Override the template dilation factor (defaults to LABELOCR_DILATION)")

    correlate = sub.add_parser("correlate", help="Assign metadata keys to detected text blocks")
    correlate.add_argument("--blocks", required=True, help="JSON list of text blocks")
    correlate.add_argument("--previous", help="JSON list of fields kept from the previous image")
    correlate.add_argument("--width", type=int, required=True)
    correlate.add_argument("--height", type=int, required=True)
    correlate.add_argument("--threshold", type=float, help="Minimum overlap (defaults to LABELOCR_OVERLAP_THRESHOLD)")
    correlate.add_argument("--prefix", help="Default key prefix (defaults to LABELOCR_METADATA_PREFIX)")
    correlate.add_argument("--best-overlap", action="store_true", help="Pick the greatest overlap, not the first")

    capture = sub.add_parser("capture", help="Save a template from reviewed fields")
    capture.add_argument("--fields", required=True, help="JSON list of field entries")
    capture.add_argument("--width", type=int, required=True)
    capture.add_argument("--height", type=int, required=True)
    capture.add_argument("--name", required=True)
    capture.add_argument("--description")
    capture.add_argument("--dilation", type=float, help="Dilation factor (defaults to LABELOCR_DILATION or 1.2)")
    capture.add_argument("--out", required=True, help="Template file to write")

    check = sub.add_parser("check-key", help="Validate a metadata key")
    check.add_argument("key")

    return parser


def _print_json(payload: Any) -> None:
    json.dump(payload, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def _match_options(args: argparse.Namespace, settings: Settings) -> MatchOptions:
    base = settings.match_options()
    update: Dict[str, Any] = {}
    if args.weighted:
        update["weighted"] = True
    if args.case_sensitive:
        update["case_insensitive"] = False
    if args.max_distance is not None:
        update["max_edit_distance"] = args.max_distance
    if args.min_similarity is not None:
        update["min_similarity"] = args.min_similarity
    return MatchOptions(**{**base.model_dump(), **update})


def _handle_match(args: argparse.Namespace, settings: Settings) -> None:
    vocabulary = load_vocabulary_file(args.vocab)
    options = _match_options(args, settings)
    if args.max_results:
        matches = find_all_matches(args.text, vocabulary, options, max_results=args.max_results)
        _print_json([match.model_dump() for match in matches])
        return
    match = find_best_match(args.text, vocabulary, options)
    _print_json(match.model_dump() if match is not None else None)


def _handle_correct(args: argparse.Namespace, settings: Settings) -> None:
    vocabulary = load_vocabulary_file(args.vocab)
    _print_json(correct_all(args.fields, vocabulary, _match_options(args, settings)))


def _read_records(parser: argparse.ArgumentParser, path: str, model: Any) -> List[Any]:
    try:
        return TypeAdapter(List[model]).validate_json(Path(path).read_bytes())
    except ValidationError as exc:
        parser.error(f"{path}: {exc}")


def _positive_dilation(parser: argparse.ArgumentParser, value: Optional[float]) -> Optional[float]:
    if value is not None and value <= 0:
        parser.error("--dilation must be positive")
    return value


def _handle_regions(parser: argparse.ArgumentParser, args: argparse.Namespace, settings: Settings) -> None:
    dilation = _positive_dilation(parser, args.dilation)
    if dilation is None:
        dilation = settings.dilation
    template = load_template(args.template)
    if dilation is not None:
        template = template.model_copy(update={"dilation_factor": dilation})
    payload: List[Dict[str, Any]] = [
        {
            "fieldIndex": region.mapping.field_index,
            "metadataKey": region.mapping.metadata_key,
            "box": region.box.model_dump(),
        }
        for region in template_regions(template, args.width, args.height)
    ]
    _print_json(payload)


def _handle_correlate(parser: argparse.ArgumentParser, args: argparse.Namespace, settings: Settings) -> None:
    blocks = _read_records(parser, args.blocks, TextBlock)
    previous = _read_records(parser, args.previous, PreviousField) if args.previous else []
    entries = correlate_fields(
        blocks,
        ImageSize(width=max(0, args.width), height=max(0, args.height)),
        previous,
        prefix=args.prefix or settings.metadata_prefix,
        threshold=settings.overlap_threshold if args.threshold is None else args.threshold,
        prefer_best_overlap=args.best_overlap,
    )
    _print_json([entry.model_dump() for entry in entries])


def _handle_capture(parser: argparse.ArgumentParser, args: argparse.Namespace, settings: Settings) -> None:
    dilation = _positive_dilation(parser, args.dilation) or settings.dilation or DEFAULT_DILATION
    if args.width <= 0 or args.height <= 0:
        parser.error("--width and --height must be positive")
    entries = _read_records(parser, args.fields, FieldEntry)
    template = capture_template(
        args.name,
        entries,
        ImageSize(width=args.width, height=args.height),
        description=args.description,
        dilation_factor=dilation,
    )
    path = save_template(template, args.out)
    _print_json(
        {
            "path": str(path),
            "fieldCount": len(template.field_mappings),
            "useFixedPositions": template.use_fixed_positions,
            "dilationFactor": template.dilation_factor,
        }
    )


def _handle_check_key(args: argparse.Namespace) -> None:
    result = validate_key(args.key)
    suggestion = suggest_alternative(args.key.strip()) if is_reserved_key(args.key.strip()) else sanitize_key(args.key)
    _print_json({"key": args.key, "valid": result.valid, "error": result.error, "suggestion": suggestion})


def main(argv: Optional[List[str]] = None) -> None:
    parser = _parser()
    args = parser.parse_args(argv)
    settings = Settings.from_env()
    configure_logging(args.log_level or settings.log_level, settings.log_format)

    if args.command == "match":
        _handle_match(args, settings)
    elif args.command == "correct":
        _handle_correct(args, settings)
    elif args.command == "regions":
        _handle_regions(parser, args, settings)
    elif args.command == "correlate":
        _handle_correlate(parser, args, settings)
    elif args.command == "capture":
        _handle_capture(parser, args, settings)
    elif args.command == "check-key":
        _handle_check_key(args)
    else:  # pragma: no cover - argparse enforces choices
        parser.error(f"Unknown command {args.command}")


if __name__ == "__main__":  # pragma: no cover
    main()
