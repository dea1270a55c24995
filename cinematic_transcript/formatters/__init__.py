"""Output formatter registry — pluggable format hub.

WHY: The CLI and pipeline need a single lookup to find the right formatter
by name. A central dict makes it trivial to add new formats: create the
formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["cinematic"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cinematic_transcript.formatters.cinematic import CinematicFormatter
from cinematic_transcript.formatters.srt_captions import SRTCaptionFormatter
from cinematic_transcript.formatters.words_json import WordsJsonFormatter

if TYPE_CHECKING:
    from cinematic_transcript.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "cinematic": CinematicFormatter,
    "words_json": WordsJsonFormatter,
    "srt_captions": SRTCaptionFormatter,
}
