"""Command-line interface for the cinematic transcript pipeline.

WHY: Archivists need to (re)build cinematic transcripts for recordings
outside the web app — new uploads, or old messages whose provider JSON is
already saved. The CLI wires the whole pipeline behind one command: file
validation, transcription (AssemblyAI or a saved JSON), loudness
annotation, formatting and saving.

HOW: Uses argparse to accept an input audio file, an optional saved
provider result (--words), output format selection and output directory.
Runs the async pipeline via asyncio.run(). Status messages go to stderr;
output files are saved next to the source (or to --output-dir).

RULES:
- Positional argument: input audio/video file path
- Validates file extension against SUPPORTED_FORMATS before any work
- --words FILE: read the provider result from disk, no API call
- --no-loudness: skip decoding; transcript keeps provider casing
- --formats: comma-separated formatter keys (default: all registered)
- --word-boost: comma-separated vocabulary hints for AssemblyAI
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-words-2.json)
- Status output goes to stderr (not stdout)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cinematic_transcript.api.client import AssemblyAIClient
from cinematic_transcript.api.models import TranscriptResult
from cinematic_transcript.audio.decoder import FfmpegDecoder
from cinematic_transcript.config import DEFAULT_LANGUAGE_CODE, SUPPORTED_FORMATS
from cinematic_transcript.formatters import FORMATTERS
from cinematic_transcript.formatters.base import FormatterOutput
from cinematic_transcript.pipeline import load_result_json, process_transcription


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
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
    - First attempt: {stem}{suffix} (e.g. message-transcript.txt)
    - Conflict: split suffix at last dot, insert counter before extension
      (e.g. message-transcript-2.txt)
    - Counter starts at 2 and increments
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
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
    path = _resolve_output_path(stem, output.suffix, output_dir)

    if isinstance(output.content, bytes):
        path.write_bytes(output.content)
    else:
        path.write_text(output.content, encoding="utf-8")

    return path


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _select_formats(formats: Optional[str]) -> List[str]:
    if not formats:
        return list(FORMATTERS.keys())
    keys = _split_list(formats)
    for key in keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            _fail("Unknown format '{}'. Available formats: {}".format(key, available))
    return keys


async def _fetch_result(args: argparse.Namespace, input_path: Path) -> TranscriptResult:
    if args.words:
        _status("Loading provider result from {}...".format(args.words))
        return load_result_json(args.words)

    async with AssemblyAIClient() as client:
        return await client.transcribe(
            input_path,
            language_code=args.language,
            speaker_labels=args.speaker_labels,
            word_boost=_split_list(args.word_boost),
            on_status=_status,
        )


async def _run_pipeline(args: argparse.Namespace) -> None:
    """Execute the full pipeline for one recording.

    RULES:
    - Validate input file, extension and output directory before any work
    - Status messages to stderr at each step
    - Save each formatter's output files with conflict avoidance
    """
    input_path = Path(args.input_file).resolve()

    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    ext = input_path.suffix.lower()
    if ext not in SUPPORTED_FORMATS:
        _fail("Unsupported file type '{}'. Supported formats: {}".format(
            ext, ", ".join(sorted(SUPPORTED_FORMATS)),
        ))

    if args.words and not Path(args.words).is_file():
        _fail("Words file not found: {}".format(args.words))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    format_keys = _select_formats(args.formats)

    try:
        result = await _fetch_result(args, input_path)
        _status("  {} words, language: {}".format(len(result.words), result.language_code or "unknown"))

        if args.loudness:
            _status("Annotating word loudness...")
        transcript = await process_transcription(
            input_path,
            result,
            decoder=FfmpegDecoder(args.ffmpeg) if args.loudness else None,
            annotate=args.loudness,
        )
        if args.loudness and not transcript.annotated:
            _status("  Loudness annotation skipped (see log)")

        _status("Formatting output...")
        saved_files: List[Path] = []
        for key in format_keys:
            formatter = FORMATTERS[key]()
            _status("  Running {} formatter...".format(formatter.name))
            for output in formatter.format(transcript):
                saved_path = _save_output(output, input_path.stem, output_dir)
                saved_files.append(saved_path)
                _status("  Saved: {}".format(saved_path.name))

        _status("")
        _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))
    except ValueError as e:
        # Config errors (missing API key, malformed words file, ...)
        _fail(str(e))
    except Exception as e:
        logging.getLogger(__name__).debug("Pipeline failed", exc_info=True)
        _fail(str(e))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="cinematic_transcript",
        description="Transcribe a voice message, tag word loudness and write a "
                    "cinematic transcript (plus annotated words JSON and SRT).",
    )

    parser.add_argument(
        "input_file",
        help="Path to the audio or video recording.",
    )

    parser.add_argument(
        "--words",
        default=None,
        help="Saved provider result JSON ({text, words, ...}). Skips the API call.",
    )

    parser.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE_CODE,
        help="Language code for AssemblyAI (default: auto-detect).",
    )

    parser.add_argument(
        "--speaker-labels",
        action="store_true",
        help="Ask AssemblyAI for speaker labels.",
    )

    parser.add_argument(
        "--word-boost",
        default=None,
        help="Comma-separated words or phrases AssemblyAI should favour (names, jargon).",
    )

    parser.add_argument(
        "--loudness",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Annotate word loudness from the audio (default: %(default)s).",
    )

    parser.add_argument(
        "--ffmpeg",
        default=None,
        help="ffmpeg executable used for decoding (default: FFMPEG_BINARY or 'ffmpeg').",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m cinematic_transcript``.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Ctrl-C anywhere in the run exits with code 130
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        asyncio.run(_run_pipeline(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)


if __name__ == "__main__":
    main()
