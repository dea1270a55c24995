"""SRT caption formatter and SRT text helpers.

WHY: The archive plays messages back with captions, and the live booth
view shows the transcript as SRT blocks that are replaced while interim
results arrive. Both need the same timecode and block formatting.

HOW: The cinematic line grouping already splits the message at pauses, so
each cinematic line becomes one caption cue timed from its first word's
start to its last word's end. The helpers format timecodes and blocks,
replace an interim block in place, and strip SRT back to plain text.

RULES:
- Timecodes are HH:MM:SS,mmm from integer milliseconds (floored)
- One cue per cinematic line; lines without timing are skipped
- append_srt_block replaces the last block when its index matches
- Output suffix: "-captions.srt", media type "application/x-subrip"
"""

from __future__ import annotations

import re
from typing import List, Optional

from cinematic_transcript.core.ir import Transcript
from cinematic_transcript.formatters.base import BaseFormatter, FormatterOutput
from cinematic_transcript.formatters.cinematic import group_lines

_INDEX_LINE_RE = re.compile(r"^[ \t]*\d+[ \t]*$\n?", re.MULTILINE)
_TIMING_LINE_RE = re.compile(
    r"^\d{2}:\d{2}:\d{2},\d{3}\s*-->\s*\d{2}:\d{2}:\d{2},\d{3}[ \t]*$\n?",
    re.MULTILINE,
)
_EXTRA_BLANK_LINES_RE = re.compile(r"\n{3,}")


def ms_to_srt_time(ms: float) -> str:
    """Format milliseconds as an SRT timecode, e.g. 3723004 → 01:02:03,004."""
    total = int(max(0, ms))
    hours = total // 3_600_000
    minutes = (total % 3_600_000) // 60_000
    seconds = (total % 60_000) // 1000
    millis = total % 1000
    return "{:02d}:{:02d}:{:02d},{:03d}".format(hours, minutes, seconds, millis)


def format_srt_block(index: int, start_ms: float, end_ms: float, text: str) -> str:
    return "{}\n{} --> {}\n{}".format(
        index, ms_to_srt_time(start_ms), ms_to_srt_time(end_ms), text,
    )


def append_srt_block(existing: Optional[str], block: Optional[str]) -> str:
    """Append an SRT block, replacing the last one if it has the same index.

    WHY: Interim realtime results re-send the segment currently being
    spoken with the same index; the final result replaces it.
    """
    if not block:
        return existing or ""
    blocks = existing.split("\n\n") if existing else []
    new_index = block.split("\n", 1)[0].strip()
    if blocks and blocks[-1].split("\n", 1)[0].strip() == new_index:
        blocks[-1] = block
    else:
        blocks.append(block)
    return "\n\n".join(blocks)


def srt_to_plain_text(srt: Optional[str]) -> str:
    """Strip SRT numbering and timecodes, keeping caption text lines."""
    if not srt:
        return ""
    text = _INDEX_LINE_RE.sub("", srt)
    text = _TIMING_LINE_RE.sub("", text)
    text = _EXTRA_BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()


class SRTCaptionFormatter(BaseFormatter):
    """Formatter that produces one SRT cue per cinematic line.

    RULES:
    - Cue text is the cinematic line text (casing and stage tags included)
    - Cues are numbered from 1 in time order
    - Empty transcript or untimed words → empty SRT
    """

    @property
    def name(self) -> str:
        return "SRT Captions"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        blocks: List[str] = []
        for line in group_lines(transcript.words):
            if line.start is None or line.end is None:
                continue
            end = max(line.end, line.start)
            blocks.append(format_srt_block(len(blocks) + 1, line.start, end, line.text))

        content = "\n\n".join(blocks)
        if content:
            content += "\n"

        return [
            FormatterOutput(
                suffix="-captions.srt",
                content=content,
                media_type="application/x-subrip",
            )
        ]
