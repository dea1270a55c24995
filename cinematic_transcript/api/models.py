"""AssemblyAI request and response dataclasses.

WHY: The AssemblyAI transcript endpoint returns one large JSON object whose
fields appear or disappear depending on the job status and the features
requested. Typed dataclasses make the parts this project uses explicit.

HOW: from_dict factories parse raw response dicts. Words are parsed into
the project's Word IR directly, so malformed timings are normalised once.

RULES:
- status is one of "queued", "processing", "completed", "error"
- words/text are only meaningful when status is "completed"
- language_code is present only when language detection ran
- Word times are milliseconds (AssemblyAI native units)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from cinematic_transcript.core.ir import Word


@dataclass
class TranscriptStatus:
    """Status fields from polling GET /transcript/{id}."""

    id: str
    status: str
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TranscriptStatus:
        return cls(
            id=data["id"],
            status=data["status"],
            error=data.get("error"),
        )


@dataclass
class TranscriptResult:
    """A completed transcript: text, word timings and language metadata.

    WHY: This is the provider result the pipeline consumes — the black box
    output ``{ text, words, confidence, language }``.

    RULES:
    - words: provider order, Word IR objects (timings may be None)
    - language_code / language_confidence: None unless detection ran
    - utterances and the audio intelligence results are raw provider JSON,
      empty (or None) unless the matching option was requested
    """

    id: str
    text: str
    words: List[Word] = field(default_factory=list)
    confidence: Optional[float] = None
    language_code: Optional[str] = None
    language_confidence: Optional[float] = None
    utterances: List[Dict[str, Any]] = field(default_factory=list)
    sentiment_analysis_results: List[Dict[str, Any]] = field(default_factory=list)
    auto_highlights_result: Optional[Dict[str, Any]] = None
    iab_categories_result: Optional[Dict[str, Any]] = None
    entities: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TranscriptResult:
        """Parse a transcript response or a saved provider JSON file.

        RULES:
        - id defaults to "" for saved files without one
        - text defaults to "" and words to [] when absent or null
        - "language" is accepted as an alias of "language_code"
        """
        raw_words = data.get("words") or []
        return cls(
            id=str(data.get("id") or ""),
            text=data.get("text") or "",
            words=[Word.from_dict(w) for w in raw_words if isinstance(w, dict)],
            confidence=data.get("confidence"),
            language_code=data.get("language_code") or data.get("language"),
            language_confidence=data.get("language_confidence"),
            utterances=data.get("utterances") or [],
            sentiment_analysis_results=data.get("sentiment_analysis_results") or [],
            auto_highlights_result=data.get("auto_highlights_result"),
            iab_categories_result=data.get("iab_categories_result"),
            entities=data.get("entities") or [],
        )
