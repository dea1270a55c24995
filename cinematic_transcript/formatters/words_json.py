"""Annotated words JSON formatter — the shape the archive persists.

WHY: The archive stores the provider text, the cinematic transcript and the
word array with loudness fields verbatim, and the player highlights words
from it. Writing the same shape to disk keeps offline runs interchangeable
with what the upload route saves.

HOW: Serialises Transcript metadata and every word via to_dict(). Loudness
keys use the provider's camelCase convention (loudnessDb, loudnessTag,
emphasisScore). The shape is described by annotated_words.schema.json,
bundled next to this module.

RULES:
- words keep provider order; untimed words carry no loudness keys
- non-finite loudnessDb is written as null (strict JSON, no -Infinity)
- Output suffix: "-words.json", media type "application/json"
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from cinematic_transcript.core.ir import Transcript
from cinematic_transcript.formatters.base import BaseFormatter, FormatterOutput

SCHEMA_PATH = Path(__file__).resolve().parent / "annotated_words.schema.json"


def transcript_to_dict(transcript: Transcript) -> Dict[str, Any]:
    return {
        "source": transcript.source_filename,
        "text": transcript.text,
        "transcript": transcript.formatted_text,
        "confidence": transcript.confidence,
        "detected_language": transcript.language,
        "language_confidence": transcript.language_confidence,
        "loudness_annotated": transcript.annotated,
        "words": [w.to_dict() for w in transcript.words],
    }


class WordsJsonFormatter(BaseFormatter):
    """Formatter that writes the annotated word array as JSON."""

    @property
    def name(self) -> str:
        return "Annotated Words JSON"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        content = json.dumps(
            transcript_to_dict(transcript),
            ensure_ascii=False,
            indent=2,
            allow_nan=False,
        )
        return [
            FormatterOutput(
                suffix="-words.json",
                content=content + "\n",
                media_type="application/json",
            )
        ]
