"""Intermediate representation dataclasses for words and transcripts.

WHY: The transcription provider returns loosely typed JSON — word timings
may be null, missing, non-numeric or inverted. The analyzer, formatters
and CLI each need the same words with predictable types. The IR gives one
well-typed form that every stage consumes, and the place where malformed
provider data is normalised.

HOW: Four dataclasses:
  Word          — one provider word with millisecond timing
  AnnotatedWord — a Word plus loudness dB, tier tag, and emphasis score
  BaselineStats — whole-file RMS mean/std used for adaptive thresholds
  Transcript    — text, words, formatted text and provider metadata

RULES:
- All times are float milliseconds (provider units), or None when unusable
- Words are frozen: annotation produces new objects, never mutates
- A word is "timed" only when start and end are finite and end > start
- to_dict() emits the provider/persistence shape (camelCase loudness keys)
- Non-finite loudnessDb serialises as None (JSON null)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


def _finite_or_none(value: Any) -> Optional[float]:
    """Coerce a provider timing/score value to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


@dataclass(frozen=True)
class Word:
    """A single word as returned by the transcription provider.

    RULES:
    - text: the token text, "" when the provider sent nothing usable
    - start / end: milliseconds, None when missing or non-numeric
    - inverted timings are kept as-is; has_valid_timing() reports them
    - speaker: provider speaker label, passed through untouched
    """

    text: str
    start: Optional[float] = None
    end: Optional[float] = None
    confidence: Optional[float] = None
    speaker: Optional[str] = None

    def has_valid_timing(self) -> bool:
        return (
            self.start is not None
            and self.end is not None
            and self.end > self.start
        )

    @classmethod
    def coerce(cls, value: Any) -> Word:
        """Return value as a Word: Words pass through, dicts are parsed,
        anything else (None, strings) becomes an untimed empty word."""
        if isinstance(value, Word):
            return value
        if isinstance(value, dict):
            return cls.from_dict(value)
        return cls(text="")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Word:
        """Parse a provider word dict, tolerating malformed fields."""
        text = data.get("text")
        speaker = data.get("speaker")
        return cls(
            text=text if isinstance(text, str) else ("" if text is None else str(text)),
            start=_finite_or_none(data.get("start")),
            end=_finite_or_none(data.get("end")),
            confidence=_finite_or_none(data.get("confidence")),
            speaker=None if speaker is None else str(speaker),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "confidence": self.confidence,
        }
        if self.speaker is not None:
            data["speaker"] = self.speaker
        return data


@dataclass(frozen=True)
class AnnotatedWord(Word):
    """A Word carrying the loudness analyzer's output.

    WHY: The cinematic formatter changes case by loudness tier, and the
    archive UI highlights emphasised words. Both read these fields.

    RULES:
    - loudness_db: dBFS of the word window; -inf for digital silence;
      None when the word had no valid timing
    - loudness_tag: "VERY_LOUD", "LOUD", "soft" or None (neutral)
    - emphasis_score: >= 0, rounded to 3 decimals; None when untimed
    """

    loudness_db: Optional[float] = None
    loudness_tag: Optional[str] = None
    emphasis_score: Optional[float] = None

    @classmethod
    def from_word(cls, word: Word, **annotations: Any) -> AnnotatedWord:
        return cls(
            text=word.text,
            start=word.start,
            end=word.end,
            confidence=word.confidence,
            speaker=word.speaker,
            **annotations,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AnnotatedWord:
        base = Word.from_dict(data)
        tag = data.get("loudnessTag")
        loudness_db = None
        if "loudnessDb" in data:
            # Persisted null means digital silence (-inf does not survive JSON)
            db = data["loudnessDb"]
            loudness_db = float("-inf") if db is None else float(db)
        return cls.from_word(
            base,
            loudness_db=loudness_db,
            loudness_tag=tag if isinstance(tag, str) else None,
            emphasis_score=_finite_or_none(data.get("emphasisScore")),
        )

    @property
    def is_annotated(self) -> bool:
        return self.loudness_db is not None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if not self.is_annotated:
            # Untimed words pass through without loudness fields
            return data
        db = self.loudness_db
        data["loudnessDb"] = db if db is not None and math.isfinite(db) else None
        data["loudnessTag"] = self.loudness_tag
        data["emphasisScore"] = self.emphasis_score
        return data


@dataclass(frozen=True)
class BaselineStats:
    """Mean and population standard deviation of whole-file frame RMS."""

    mean: float = 0.0
    std: float = 0.0


@dataclass
class Transcript:
    """The complete transcript handed to formatters.

    WHY: Formatters need the provider text, the (possibly annotated) words
    and the cinematic text, plus metadata for naming and JSON output.

    HOW: Built by pipeline.process_transcription from a provider result and
    the analyzer output.

    RULES:
    - words: AnnotatedWord when annotation succeeded, plain Word otherwise
    - annotated: True only when the loudness analyzer ran to completion
    - formatted_text: the cinematic transcript string
    - source_filename: original audio filename (for output naming)
    """

    text: str
    words: List[Union[Word, AnnotatedWord]] = field(default_factory=list)
    formatted_text: str = ""
    confidence: Optional[float] = None
    language: Optional[str] = None
    language_confidence: Optional[float] = None
    source_filename: str = ""
    annotated: bool = False
