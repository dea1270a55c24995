"""Shared test fixtures for the cinematic_transcript test suite.

WHY: The analyzer, pipeline and CLI tests all need synthetic PCM with
known amplitudes and provider-shaped word lists. Centralizing the builders
here keeps the expected dB values in one place.

HOW: build_pcm() renders (duration_ms, amplitude) spans as an alternating
+A/-A square wave, whose RMS is exactly A. Fixtures provide a recording
with one shouted word and the matching provider result.

RULES:
- PCM is mono s16le at 16 kHz, like the ffmpeg decoder produces
- Amplitudes are chosen so expected tags follow from hand-computed stats
"""

from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
import pytest

SAMPLE_RATE = 16000


def build_pcm(spans: Sequence[Tuple[int, int]], sample_rate: int = SAMPLE_RATE) -> bytes:
    """Render (duration_ms, amplitude) spans as s16le bytes with RMS == amplitude."""
    chunks = []
    for duration_ms, amplitude in spans:
        n = int(duration_ms * sample_rate / 1000)
        signs = np.where(np.arange(n) % 2 == 0, 1, -1)
        chunks.append((signs * amplitude).astype("<i2"))
    if not chunks:
        return b""
    return np.concatenate(chunks).tobytes()


def word(text: str, start: Any, end: Any, confidence: float = 0.9) -> Dict[str, Any]:
    return {"text": text, "start": start, "end": end, "confidence": confidence}


# One shouted word between two normal ones:
#   0-500 ms @ 1000, 500-1000 ms @ 8000, 1000-3000 ms @ 1000
SHOUT_SPANS = [(500, 1000), (500, 8000), (2000, 1000)]

SHOUT_WORDS: List[Dict[str, Any]] = [
    word("well", 0, 500),
    word("stop", 500, 1000),
    word("please", 1000, 3000),
]


@pytest.fixture
def shout_pcm():
    return build_pcm(SHOUT_SPANS)


@pytest.fixture
def shout_words():
    return [dict(w) for w in SHOUT_WORDS]


@pytest.fixture
def provider_response():
    """AssemblyAI-shaped completed transcript for the shout recording."""
    return {
        "id": "5551722-f677-48a2-b3d0-6e3b2c1f5a4e",
        "status": "completed",
        "text": "Well, stop please.",
        "words": [
            word("Well,", 0, 500, 0.97),
            word("stop", 500, 1000, 0.95),
            word("please.", 1000, 3000, 0.93),
        ],
        "confidence": 0.95,
        "language_code": "en",
        "language_confidence": 0.98,
    }
