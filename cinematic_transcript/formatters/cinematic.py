"""Cinematic transcript formatter — pause-aware lines, loudness casing, stage tags.

WHY: The archive shows voice messages like a screenplay: long pauses start
a new paragraph, shorter ones a new line, shouted words are uppercased,
soft ones lowercased, and provider event tags such as [laughter] read as
stage directions, "(laughs)".

HOW: Walk the words in order. Each token gets its stage tags converted and
its case set by the loudness tag, then is joined onto the current line
(punctuation attaches to the previous token). After every word except the
last, the silence before the next word decides whether to continue the
line, break it, or break the paragraph. Each finished line gets a dash
cleanup pass; lines are joined with newlines and the whole is trimmed.

RULES:
- words empty or not a list → convert_stage_tags(text), nothing else
- gap = next.start - (word.end, else word.start); 0 if either is missing
- gap >= PARAGRAPH_BREAK_GAP_MS → line break plus one blank line
- LINE_BREAK_GAP_MS <= gap < PARAGRAPH_BREAK_GAP_MS → line break
- LOUD / VERY_LOUD → upper case, soft → lower case, untagged unchanged
- word followed by 2+ hyphens (and one optional space) → word plus em dash
- trailing floating hyphen on a line → " -" (cut-off word)
- convert_stage_tags is idempotent
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from cinematic_transcript.config import (
    LINE_BREAK_GAP_MS,
    PARAGRAPH_BREAK_GAP_MS,
    TAG_LOUD,
    TAG_SOFT,
    TAG_VERY_LOUD,
)
from cinematic_transcript.core.ir import AnnotatedWord, Transcript, Word
from cinematic_transcript.formatters.base import BaseFormatter, FormatterOutput

# Known provider event tags → stage directions. Applied before the generic rule.
_STAGE_TAGS = (
    (re.compile(r"\[(laughter)\]", re.IGNORECASE), "(laughs)"),
    (re.compile(r"\[(music)\]", re.IGNORECASE), "(music)"),
    (re.compile(r"\[(applause)\]", re.IGNORECASE), "(applause)"),
    (re.compile(r"\[(sigh)\]", re.IGNORECASE), "(sighs)"),
    (re.compile(r"\[(silence)\]", re.IGNORECASE), "(pause)"),
)
_GENERIC_TAG_RE = re.compile(r"\[([^\[\]]+)\]")
_SPACED_EM_DASH_RE = re.compile(r"\s\u2014\s")
_SPACED_HYPHEN_RE = re.compile(r"\s-\s")

_STRETCHED_DASH_RE = re.compile(r"\b([A-Za-z]+)\s?-{2,}[ \t]?")
_TRAILING_HYPHEN_RE = re.compile(r"\s?-\s?$")

# Tokens that attach to the previous token with no space.
_NO_SPACE_BEFORE = frozenset({",", ".", "!", "?", ":", ";", ")", "]", "}", '"', "\u201d", "'", "\u2026"})
# Characters after which the next token attaches with no space.
_NO_SPACE_AFTER = frozenset({"(", "[", "{", "\u201c"})

_UPPER_TAGS = frozenset({TAG_LOUD, TAG_VERY_LOUD})

WordLike = Union[Word, Dict[str, Any]]


def convert_stage_tags(text: Optional[str]) -> str:
    """Turn bracketed provider tags into parenthetical stage directions.

    Known tags map to fixed directions ([laughter] → (laughs)); any other
    bracketed text keeps its words inside parentheses. Nested brackets
    resolve innermost first. Spacing around free-standing dashes is
    normalised to one space each side.
    """
    result = text or ""
    for pattern, replacement in _STAGE_TAGS:
        result = pattern.sub(replacement, result)
    while True:
        converted = _GENERIC_TAG_RE.sub(lambda m: "({})".format(m.group(1)), result)
        if converted == result:
            break
        result = converted
    result = _SPACED_EM_DASH_RE.sub(" \u2014 ", result)
    result = _SPACED_HYPHEN_RE.sub(" - ", result)
    return result


def apply_loudness_case(token: str, loudness_tag: Optional[str]) -> str:
    if loudness_tag in _UPPER_TAGS:
        return token.upper()
    if loudness_tag == TAG_SOFT:
        return token.lower()
    return token


def push_token(tokens: List[str], token: str) -> None:
    """Append token to a line, gluing punctuation and post-bracket tokens."""
    if not token:
        return
    if not tokens:
        tokens.append(token)
        return
    prev = tokens[-1]
    if token in _NO_SPACE_BEFORE or prev[-1] in _NO_SPACE_AFTER:
        tokens[-1] = prev + token
    else:
        tokens.append(token)


def cleanup_line(line: str) -> str:
    """Collapse stretched hyphens into an em dash and mark cut-off words."""
    line = _STRETCHED_DASH_RE.sub("\\1\u2014", line)
    return _TRAILING_HYPHEN_RE.sub(" -", line)


@dataclass
class CinematicLine:
    """One rendered line of the cinematic transcript.

    RULES:
    - start: start of the first timed word on the line (ms), or None
    - end: end of the last timed word on the line (ms), or None
    - paragraph_break: True when a blank line precedes this line
    """

    tokens: List[str] = field(default_factory=list)
    start: Optional[float] = None
    end: Optional[float] = None
    paragraph_break: bool = False

    @property
    def text(self) -> str:
        return cleanup_line(" ".join(self.tokens))

    def add(self, token: str, word: Word) -> None:
        push_token(self.tokens, token)
        if self.start is None and word.start is not None:
            self.start = word.start
        word_end = word.end if word.end is not None else word.start
        if word_end is not None:
            self.end = word_end


def _gap_after(word: Word, next_word: Word) -> float:
    reference = word.end if word.end is not None else word.start
    if reference is None or next_word.start is None:
        return 0.0
    return max(0.0, next_word.start - reference)


def _render_token(word: Word) -> str:
    tag = word.loudness_tag if isinstance(word, AnnotatedWord) else None
    return apply_loudness_case(convert_stage_tags(word.text), tag)


def group_lines(words: Sequence[WordLike]) -> List[CinematicLine]:
    """Group words into cinematic lines using inter-word silence gaps."""
    parsed = [AnnotatedWord.coerce(w) for w in words]
    parsed = [w for w in parsed if w.text]

    lines: List[CinematicLine] = []
    current = CinematicLine()
    for idx, word in enumerate(parsed):
        current.add(_render_token(word), word)
        if idx == len(parsed) - 1:
            break

        gap = _gap_after(word, parsed[idx + 1])
        if gap >= PARAGRAPH_BREAK_GAP_MS:
            if current.tokens:
                lines.append(current)
            current = CinematicLine(paragraph_break=bool(lines))
        elif gap >= LINE_BREAK_GAP_MS:
            if current.tokens:
                lines.append(current)
                current = CinematicLine()

    if current.tokens:
        lines.append(current)
    return lines


def render_lines(lines: Sequence[CinematicLine]) -> str:
    out: List[str] = []
    for line in lines:
        if line.paragraph_break and out:
            out.append("")
        out.append(line.text)
    return "\n".join(out).strip()


def format_cinematic_transcript(
    words: Optional[Sequence[WordLike]] = None,
    text: Optional[str] = "",
) -> str:
    """Build the cinematic transcript string.

    Args:
        words: Annotated words, plain words, or provider word dicts.
        text: Provider full text; used only when words is empty/not a list.

    Returns:
        The formatted transcript with newline line breaks and blank-line
        paragraph breaks.
    """
    if not isinstance(words, (list, tuple)) or not words:
        return convert_stage_tags(text)
    return render_lines(group_lines(words))


class CinematicFormatter(BaseFormatter):
    """Formatter that writes the cinematic transcript as plain text.

    RULES:
    - Uses transcript.formatted_text when the pipeline already built it
    - Otherwise formats transcript.words / transcript.text on the fly
    - Output suffix: "-transcript.txt", media type "text/plain"
    """

    @property
    def name(self) -> str:
        return "Cinematic Text"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        content = transcript.formatted_text or format_cinematic_transcript(
            transcript.words, transcript.text,
        )
        if content:
            content += "\n"

        return [
            FormatterOutput(
                suffix="-transcript.txt",
                content=content,
                media_type="text/plain",
            )
        ]
