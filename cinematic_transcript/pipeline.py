"""Transcription pipeline — provider result + audio → annotated Transcript IR.

WHY: Every place that receives a transcript (CLI, upload handlers) must do
the same two things: try to annotate word loudness, then build the
cinematic text. Loudness tagging is an enhancement, so a decode failure
must never cost the caller its transcript.

HOW: process_transcription() runs the loudness analyzer through the
injected decoder, catches DecodeError (and OS-level failures of the
decoder), logs a warning and keeps the provider words. It then formats the
cinematic transcript and returns the Transcript IR for the formatters.

RULES:
- DecodeError / OSError during annotation → warning, original words kept
- annotate=False skips decoding entirely
- Transcript.annotated is True only when annotation ran to completion
- formatted_text is always built, from words when present, else from text
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Union

from cinematic_transcript.api.models import TranscriptResult
from cinematic_transcript.audio.decoder import DecodeError, PCMDecoder
from cinematic_transcript.core.ir import Transcript
from cinematic_transcript.core.loudness import (
    DEFAULT_LOUDNESS,
    LoudnessSettings,
    annotate_word_loudness,
)
from cinematic_transcript.formatters.cinematic import format_cinematic_transcript

logger = logging.getLogger(__name__)


def load_result_json(path: Union[str, Path]) -> TranscriptResult:
    """Load a provider response saved as JSON.

    RULES:
    - Accepts the AssemblyAI transcript object or any {text, words, ...} dict
    - Raises ValueError when the file is not a JSON object
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object in {}, got {}".format(path, type(data).__name__))
    return TranscriptResult.from_dict(data)


async def process_transcription(
    audio_path: Union[str, Path],
    result: TranscriptResult,
    decoder: Optional[PCMDecoder] = None,
    annotate: bool = True,
    settings: LoudnessSettings = DEFAULT_LOUDNESS,
) -> Transcript:
    """Annotate a provider result and build the cinematic Transcript IR.

    Args:
        audio_path: The recording the result was transcribed from.
        result: Provider text, words and language metadata.
        decoder: PCM decoder for the analyzer (ffmpeg when omitted).
        annotate: False to skip loudness annotation.
        settings: Loudness constants.

    Returns:
        Transcript with (possibly annotated) words and formatted text.
    """
    original = list(result.words)
    words = original
    annotated = False

    if annotate and original:
        try:
            words = await annotate_word_loudness(audio_path, original, decoder=decoder, settings=settings)
            # The analyzer hands back the same list when it had nothing to decode
            annotated = words is not original
        except (DecodeError, OSError) as e:
            logger.warning("Loudness annotation failed for %s: %s", audio_path, e)
            words = original

    formatted = format_cinematic_transcript(words, result.text)
    logger.info(
        "Formatted transcript for %s: %d words, %d lines",
        Path(audio_path).name,
        len(words),
        formatted.count("\n") + 1 if formatted else 0,
    )

    return Transcript(
        text=result.text,
        words=words,
        formatted_text=formatted,
        confidence=result.confidence,
        language=result.language_code,
        language_confidence=result.language_confidence,
        source_filename=Path(audio_path).name,
        annotated=annotated,
    )
