"""Configuration constants, loudness tuning values, and .env loading.

WHY: The loudness tiers and the pause-based line breaks are driven by a
dozen numbers (dBFS floors, z-score cutoffs, gap lengths). Keeping them as
named module-level constants makes them easy to find, tune, and test
independently of the algorithms that use them.

HOW: python-dotenv loads the .env file on import. Constants are plain
module-level values. Deployment-specific values (ffmpeg binary, API base
URL) can be overridden via environment variables. load_api_key() gives a
clear error when the AssemblyAI key is missing.

RULES:
- PCM is always mono, signed 16-bit little-endian at SAMPLE_RATE_HZ
- dB values are dBFS relative to FULL_SCALE (16-bit max amplitude)
- Gap thresholds are inclusive lower bounds, in milliseconds
- API key is loaded from .env via python-dotenv, never hardcoded
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# PCM decoding
# ---------------------------------------------------------------------------

SAMPLE_RATE_HZ = 16000
SAMPLE_WIDTH_BYTES = 2
FULL_SCALE = 32768.0
"""Maximum absolute amplitude of a signed 16-bit sample."""

FFMPEG_BINARY = os.getenv("FFMPEG_BINARY", "ffmpeg")

# ---------------------------------------------------------------------------
# Loudness baseline and thresholds
# ---------------------------------------------------------------------------

BASELINE_FRAME_MS = 50

LOUD_FLOOR_DB = -24.0
VERY_LOUD_FLOOR_DB = -18.0
SOFT_CEILING_DB = -38.0

LOUD_STD_MULTIPLIER = 1.0
VERY_LOUD_STD_MULTIPLIER = 2.0
SOFT_STD_MULTIPLIER = 1.0

LOUD_Z = 1.0
VERY_LOUD_Z = 2.0
SOFT_Z = -1.0

LOUD_BOOST_DB = 3.0
VERY_LOUD_BOOST_DB = 6.0

EMPHASIS_Z_DIVISOR = 3.0
EMPHASIS_BOOST_DIVISOR = 12.0
EMPHASIS_DECIMALS = 3

# Loudness tags as stored on annotated words
TAG_VERY_LOUD = "VERY_LOUD"
TAG_LOUD = "LOUD"
TAG_SOFT = "soft"

# ---------------------------------------------------------------------------
# Cinematic line breaks
# ---------------------------------------------------------------------------

LINE_BREAK_GAP_MS = 500
PARAGRAPH_BREAK_GAP_MS = 2000

# ---------------------------------------------------------------------------
# Supported audio/video file extensions
# ---------------------------------------------------------------------------

SUPPORTED_FORMATS: set[str] = {
    ".aac", ".flac", ".m4a", ".mp3", ".mp4",
    ".ogg", ".opus", ".wav", ".webm",
}
"""Audio/video file extensions accepted for transcription (lowercase, with dot)."""

# ---------------------------------------------------------------------------
# AssemblyAI configuration defaults
# ---------------------------------------------------------------------------

ASSEMBLYAI_BASE_URL = os.getenv("ASSEMBLYAI_BASE_URL", "https://api.assemblyai.com/v2")
DEFAULT_LANGUAGE_CODE = os.getenv("DEFAULT_LANGUAGE_CODE") or None


def load_api_key() -> str:
    """Load the AssemblyAI API key from the environment.

    WHY: The API key is required for all AssemblyAI calls. Loading it
    from the environment (via .env) keeps it out of source code.

    HOW: Reads ASSEMBLYAI_API_KEY from os.environ (populated by python-dotenv).

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("ASSEMBLYAI_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "Missing ASSEMBLYAI_API_KEY. "
            "Add it to the .env file or the environment."
        )
    return key
