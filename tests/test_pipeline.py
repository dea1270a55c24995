"""Tests for the transcription pipeline glue.

Decoding is replaced by StaticPCMDecoder or a failing decoder, so these
run without ffmpeg.
"""

import asyncio
import json

import pytest

from cinematic_transcript.api.models import TranscriptResult
from cinematic_transcript.audio.decoder import DecodeError, StaticPCMDecoder
from cinematic_transcript.core.ir import AnnotatedWord, Word
from cinematic_transcript.pipeline import load_result_json, process_transcription


class _FailingDecoder:
    def __init__(self, exc):
        self.exc = exc

    async def decode(self, path, sample_rate=16000):
        raise self.exc


class TestProcessTranscription:

    def test_annotates_and_formats(self, provider_response, shout_pcm):
        result = TranscriptResult.from_dict(provider_response)
        transcript = asyncio.run(process_transcription(
            "/tmp/message.webm", result, decoder=StaticPCMDecoder(shout_pcm),
        ))

        assert transcript.annotated is True
        assert all(isinstance(w, AnnotatedWord) for w in transcript.words)
        assert [w.loudness_tag for w in transcript.words] == [None, "VERY_LOUD", None]
        assert transcript.formatted_text == "Well, STOP please."
        assert transcript.text == "Well, stop please."
        assert transcript.language == "en"
        assert transcript.language_confidence == 0.98
        assert transcript.source_filename == "message.webm"

    @pytest.mark.parametrize("exc", [
        DecodeError("/tmp/message.webm", "ffmpeg exited with code 1: bad header", returncode=1),
        FileNotFoundError("gone"),
    ])
    def test_decode_failure_keeps_original_words(self, provider_response, caplog, exc):
        result = TranscriptResult.from_dict(provider_response)
        with caplog.at_level("WARNING"):
            transcript = asyncio.run(process_transcription(
                "/tmp/message.webm", result, decoder=_FailingDecoder(exc),
            ))

        assert transcript.annotated is False
        assert transcript.words == result.words
        assert transcript.formatted_text == "Well, stop please."
        assert "Loudness annotation failed" in caplog.text

    def test_annotation_disabled(self, provider_response):
        result = TranscriptResult.from_dict(provider_response)
        transcript = asyncio.run(process_transcription(
            "/tmp/message.webm", result,
            decoder=_FailingDecoder(AssertionError("must not decode")),
            annotate=False,
        ))
        assert transcript.annotated is False
        assert all(type(w) is Word for w in transcript.words)

    def test_empty_pcm_is_not_annotated(self, provider_response):
        result = TranscriptResult.from_dict(provider_response)
        transcript = asyncio.run(process_transcription(
            "/tmp/message.webm", result, decoder=StaticPCMDecoder(b""),
        ))
        assert transcript.annotated is False
        assert transcript.formatted_text == "Well, stop please."

    def test_no_words_falls_back_to_text(self):
        result = TranscriptResult(id="", text="just text [laughter]")
        transcript = asyncio.run(process_transcription(
            "/tmp/message.webm", result,
            decoder=_FailingDecoder(AssertionError("must not decode")),
        ))
        assert transcript.formatted_text == "just text (laughs)"
        assert transcript.words == []


class TestLoadResultJson:

    def test_loads_provider_object(self, tmp_path, provider_response):
        path = tmp_path / "result.json"
        path.write_text(json.dumps(provider_response), encoding="utf-8")
        result = load_result_json(path)
        assert result.text == "Well, stop please."
        assert len(result.words) == 3
        assert result.words[1] == Word(text="stop", start=500.0, end=1000.0, confidence=0.95)

    def test_language_alias(self, tmp_path):
        path = tmp_path / "result.json"
        path.write_text(json.dumps({"text": "hola", "words": None, "language": "es"}), encoding="utf-8")
        result = load_result_json(path)
        assert result.language_code == "es"
        assert result.words == []
        assert result.id == ""

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "result.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(ValueError, match="Expected a JSON object"):
            load_result_json(path)
