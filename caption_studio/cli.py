"""Command-line interface for Caption Studio.

WHY: Users need a simple way to turn raw OCR detections or word-level
transcription output into subtitle files from the terminal. The CLI
wires together parsing, segmentation, optional translation, pluggable
formatter output, and file saving behind a single command.

HOW: argparse with three subcommands:
  ocr         — observations JSON → temporal segmentation → files
  transcript  — transcription JSON → editable document → files
  reexport    — saved transcript JSON → editable document → files
Translation (--translate-to) runs the async TranslationClient via
asyncio.run(). Status messages go to stderr; output files are saved next
to the input (or to --output-dir).

RULES:
- Positional argument: input JSON file path
- --formats: comma-separated formatter keys (default: srt,json)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (name-2.srt)
- Status output goes to stderr (not stdout)
- Exit code 1 on input/config errors, 130 on Ctrl-C
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import jsonschema

from caption_studio.adapters.observation_adapter import (
    check_monotonic,
    parse_observations,
    parse_transcription,
)
from caption_studio.api.client import TranslationAPIError, TranslationClient
from caption_studio.config import (
    DEFAULT_GAP_THRESHOLD,
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_SEGMENT_CHARS,
)
from caption_studio.core.controller import DocumentController
from caption_studio.core.errors import CaptionStudioError
from caption_studio.core.ir import Transcript
from caption_studio.core.segmenter import make_sentence_boundary, segment_observations
from caption_studio.formatters import FORMATTERS
from caption_studio.formatters.base import FormatterOutput

_DEFAULT_FORMATS = "srt,json"


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding numeric suffix on conflict.

    RULES:
    - First attempt: {stem}{suffix} (e.g. interview.srt)
    - Conflict: split suffix at last dot, insert counter before extension
      (e.g. interview-2.srt, interview-dual-2.srt)
    - Counter starts at 2 and increments
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx >= 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(
    output: FormatterOutput,
    stem: str,
    output_dir: Path,
) -> Path:
    """Save a single formatter output to disk (UTF-8 text or bytes)."""
    path = _resolve_output_path(stem, output.suffix, output_dir)

    if isinstance(output.content, bytes):
        path.write_bytes(output.content)
    else:
        path.write_text(output.content, encoding="utf-8")

    return path


def _parse_format_keys(raw: str) -> List[str]:
    format_keys = [f.strip() for f in raw.split(",") if f.strip()]
    for key in format_keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            _fail("Unknown format '{}'. Available formats: {}".format(key, available))
    return format_keys


def _load_json(path: Path):
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        _fail("{} is not valid JSON: {}".format(path.name, e))


async def _translate_items(
    items: List[tuple],
    source_language: str,
    target_language: str,
) -> Dict[str, str]:
    async with TranslationClient() as client:
        results = await client.translate_segments(
            items,
            source_language=source_language,
            target_language=target_language,
        )
    return {r.id: r.text for r in results}


async def _translate_document(controller: DocumentController, target_language: str) -> int:
    async with TranslationClient() as client:
        return await controller.translate(client, target_language)


def _build_ocr_transcript(args: argparse.Namespace, input_path: Path) -> Transcript:
    observations = parse_observations(_load_json(input_path))
    _status("  Parsed {} observations".format(len(observations)))
    check_monotonic(observations)

    segments = segment_observations(observations, gap_threshold=args.gap_threshold)
    _status("  {} segments (gap threshold {:.2f}s)".format(len(segments), args.gap_threshold))

    transcript = Transcript(
        segments=segments,
        language=args.language,
        source_filename=input_path.name,
    )
    if args.translate_to and segments:
        _status("Translating to {}...".format(args.translate_to))
        transcript.translations = asyncio.run(_translate_items(
            [(s.id, s.text) for s in segments],
            args.language,
            args.translate_to,
        ))
    return transcript


def _build_document_transcript(args: argparse.Namespace, input_path: Path) -> Transcript:
    words, language = parse_transcription(_load_json(input_path))
    if args.language:
        language = args.language
    _status("  Parsed {} words (language: {})".format(len(words), language))

    controller = DocumentController()
    controller.load_words(
        words,
        language=language,
        boundary=make_sentence_boundary(args.max_chars),
    )
    _status("  {} segments".format(len(controller.segments)))

    if args.translate_to and controller.segments:
        _status("Translating to {}...".format(args.translate_to))
        applied = asyncio.run(_translate_document(controller, args.translate_to))
        _status("  {} translations applied".format(applied))
    return controller.to_transcript(input_path.name)


def _build_saved_transcript(args: argparse.Namespace, input_path: Path) -> Transcript:
    controller = DocumentController()
    count = controller.import_json(input_path.read_bytes())
    _status("  Imported {} segments (language: {})".format(count, controller.language))

    if args.translate_to and controller.segments:
        _status("Translating to {}...".format(args.translate_to))
        applied = asyncio.run(_translate_document(controller, args.translate_to))
        _status("  {} translations applied".format(applied))
    return controller.to_transcript(input_path.name)


def _run(args: argparse.Namespace) -> None:
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    format_keys = _parse_format_keys(args.formats)

    _status("Loading {}...".format(input_path.name))
    try:
        if args.command == "ocr":
            transcript = _build_ocr_transcript(args, input_path)
        elif args.command == "reexport":
            transcript = _build_saved_transcript(args, input_path)
        else:
            transcript = _build_document_transcript(args, input_path)
    except (CaptionStudioError, TranslationAPIError, httpx.HTTPError, ValueError) as e:
        _fail(str(e))

    _status("Formatting output...")
    # All formats run before any file is written.
    outputs: List[FormatterOutput] = []
    try:
        for key in format_keys:
            formatter = FORMATTERS[key]()
            _status("  Running {} formatter...".format(formatter.name))
            outputs.extend(formatter.format(transcript))
    except jsonschema.ValidationError as e:
        _fail("Output failed schema validation: {}".format(e.message))

    saved_files: List[Path] = []
    for output in outputs:
        saved_path = _save_output(output, input_path.stem, output_dir)
        saved_files.append(saved_path)
        _status("  Saved: {}".format(saved_path.name))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="caption_studio",
        description="Segment OCR detections or word-level transcripts and "
                    "export subtitles (SRT, dual-language SRT, JSON, plain text).",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "input_file",
        help="Path to the input JSON file.",
    )
    common.add_argument(
        "--formats",
        default=_DEFAULT_FORMATS,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: %(default)s.".format(", ".join(sorted(FORMATTERS.keys()))),
    )
    common.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )
    common.add_argument(
        "--translate-to",
        default=None,
        help="Target language tag; requires TRANSLATION_API_KEY.",
    )

    ocr = subparsers.add_parser(
        "ocr",
        parents=[common],
        help="Segment a time-ordered list of OCR observations.",
    )
    ocr.add_argument(
        "--gap-threshold",
        type=float,
        default=DEFAULT_GAP_THRESHOLD,
        help="Max seconds between repeated detections in one segment (default: %(default)s).",
    )
    ocr.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE,
        help="Language tag of the on-screen text (default: %(default)s).",
    )

    transcript = subparsers.add_parser(
        "transcript",
        parents=[common],
        help="Partition word-level transcription output into segments.",
    )
    transcript.add_argument(
        "--max-chars",
        type=int,
        default=DEFAULT_MAX_SEGMENT_CHARS,
        help="Start a new segment past this many characters (default: %(default)s).",
    )
    transcript.add_argument(
        "--language",
        default=None,
        help="Override the language tag found in the input.",
    )

    subparsers.add_parser(
        "reexport",
        parents=[common],
        help="Re-export a transcript saved with the json format; "
             "segment ids and translations are kept.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m caption_studio`` and ``caption-studio``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        _run(args)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)


if __name__ == "__main__":
    main()
