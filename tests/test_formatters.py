"""Unit tests for the SRT and annotated-words JSON formatters.

WHY: The archive player reads the words JSON verbatim and the booth view
consumes the SRT blocks. Invalid JSON (e.g. -Infinity) or malformed
timecodes break playback for every listener.

HOW: Tests build small Transcript IRs by hand:
  - SRT helpers: timecodes, block formatting, interim replacement, stripping
  - SRT formatter: one cue per cinematic line, untimed lines skipped
  - Words JSON: schema validation, null loudness for silence, untimed words
  - Registry: every key maps to a BaseFormatter subclass

RULES:
- Schema validation uses the bundled annotated_words.schema.json.
"""

import json
import math

import jsonschema
import pytest

from cinematic_transcript.core.ir import AnnotatedWord, Transcript, Word
from cinematic_transcript.formatters import FORMATTERS
from cinematic_transcript.formatters.base import BaseFormatter
from cinematic_transcript.formatters.srt_captions import (
    SRTCaptionFormatter,
    append_srt_block,
    format_srt_block,
    ms_to_srt_time,
    srt_to_plain_text,
)
from cinematic_transcript.formatters.words_json import (
    SCHEMA_PATH,
    WordsJsonFormatter,
    transcript_to_dict,
)


def _load_schema():
    with open(SCHEMA_PATH) as f:
        return json.load(f)


def _annotated_transcript():
    words = [
        AnnotatedWord(text="Well,", start=0.0, end=500.0, confidence=0.97,
                      loudness_db=-30.3, loudness_tag=None, emphasis_score=0.776),
        AnnotatedWord(text="stop", start=500.0, end=1000.0, confidence=0.95,
                      loudness_db=-12.25, loudness_tag="VERY_LOUD", emphasis_score=3.25),
        AnnotatedWord(text="please.", start=3000.0, end=3500.0, confidence=0.93,
                      loudness_db=-math.inf, loudness_tag=None, emphasis_score=0.0),
        AnnotatedWord(text="[laughter]", confidence=0.5),
    ]
    return Transcript(
        text="Well, stop please. [laughter]",
        words=words,
        formatted_text="Well, STOP\n\nplease. (laughs)",
        confidence=0.95,
        language="en",
        language_confidence=0.98,
        source_filename="message.webm",
        annotated=True,
    )


# =========================================================================
# SRT helpers
# =========================================================================

class TestSrtHelpers:

    @pytest.mark.parametrize("ms,expected", [
        (0, "00:00:00,000"),
        (1500, "00:00:01,500"),
        (3723004, "01:02:03,004"),
        (999.9, "00:00:00,999"),
        (-20, "00:00:00,000"),
    ])
    def test_ms_to_srt_time(self, ms, expected):
        assert ms_to_srt_time(ms) == expected

    def test_format_block(self):
        assert format_srt_block(3, 1000, 2500, "Hi") == "3\n00:00:01,000 --> 00:00:02,500\nHi"

    def test_append_to_empty(self):
        block = format_srt_block(1, 0, 100, "a")
        assert append_srt_block("", block) == block
        assert append_srt_block(None, block) == block

    def test_append_new_index(self):
        first = format_srt_block(1, 0, 100, "a")
        second = format_srt_block(2, 200, 300, "b")
        assert append_srt_block(first, second) == first + "\n\n" + second

    def test_append_same_index_replaces_interim(self):
        interim = format_srt_block(1, 0, 100, "hel")
        final = format_srt_block(1, 0, 300, "hello")
        assert append_srt_block(interim, final) == final

    def test_append_nothing(self):
        assert append_srt_block("x", "") == "x"
        assert append_srt_block(None, None) == ""

    def test_plain_text(self):
        srt = "\n\n".join([
            format_srt_block(1, 0, 100, "Hello there"),
            format_srt_block(2, 200, 300, "General Kenobi"),
        ])
        assert srt_to_plain_text(srt) == "Hello there\n\nGeneral Kenobi"

    def test_plain_text_empty(self):
        assert srt_to_plain_text("") == ""
        assert srt_to_plain_text(None) == ""


# =========================================================================
# SRT formatter
# =========================================================================

class TestSRTCaptionFormatter:

    def test_one_cue_per_line(self):
        (out,) = SRTCaptionFormatter().format(_annotated_transcript())
        assert out.suffix == "-captions.srt"
        assert out.media_type == "application/x-subrip"
        assert out.content == (
            "1\n00:00:00,000 --> 00:00:01,000\nWell, STOP\n\n"
            "2\n00:00:03,000 --> 00:00:03,500\nplease. (laughs)\n"
        )

    def test_untimed_transcript_is_empty(self):
        transcript = Transcript(text="a b", words=[Word(text="a"), Word(text="b")])
        (out,) = SRTCaptionFormatter().format(transcript)
        assert out.content == ""

    def test_no_words(self):
        (out,) = SRTCaptionFormatter().format(Transcript(text="hello"))
        assert out.content == ""


# =========================================================================
# Words JSON
# =========================================================================

class TestWordsJsonFormatter:

    def test_schema_validation(self):
        (out,) = WordsJsonFormatter().format(_annotated_transcript())
        jsonschema.validate(json.loads(out.content), _load_schema())

    def test_output_suffix_and_media_type(self):
        (out,) = WordsJsonFormatter().format(_annotated_transcript())
        assert out.suffix == "-words.json"
        assert out.media_type == "application/json"

    def test_silence_is_null(self):
        (out,) = WordsJsonFormatter().format(_annotated_transcript())
        assert "Infinity" not in out.content
        data = json.loads(out.content)
        assert data["words"][2]["loudnessDb"] is None
        assert data["words"][2]["emphasisScore"] == 0.0

    def test_untimed_word_has_no_loudness_keys(self):
        data = transcript_to_dict(_annotated_transcript())
        last = data["words"][3]
        assert last == {"text": "[laughter]", "start": None, "end": None, "confidence": 0.5}

    def test_metadata(self):
        data = transcript_to_dict(_annotated_transcript())
        assert data["source"] == "message.webm"
        assert data["detected_language"] == "en"
        assert data["loudness_annotated"] is True
        assert data["transcript"] == "Well, STOP\n\nplease. (laughs)"
        assert data["words"][1]["loudnessTag"] == "VERY_LOUD"

    def test_plain_words_validate(self):
        transcript = Transcript(text="hi", words=[Word(text="hi", start=0, end=100, confidence=0.9, speaker="A")])
        (out,) = WordsJsonFormatter().format(transcript)
        jsonschema.validate(json.loads(out.content), _load_schema())

    def test_round_trip_through_ir(self):
        data = transcript_to_dict(_annotated_transcript())
        restored = [AnnotatedWord.from_dict(w) for w in data["words"]]
        assert restored[2].loudness_db == -math.inf
        assert restored[1] == _annotated_transcript().words[1]
        assert not restored[3].is_annotated


# =========================================================================
# Registry
# =========================================================================

class TestRegistry:

    def test_keys(self):
        assert set(FORMATTERS) == {"cinematic", "words_json", "srt_captions"}

    def test_values_are_formatter_classes(self):
        for cls in FORMATTERS.values():
            assert issubclass(cls, BaseFormatter)
            assert cls().name
