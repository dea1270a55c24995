"""Per-word loudness annotation against an adaptive whole-file baseline.

WHY: A voice message that shouts one word and whispers the next reads the
same in plain text. Tagging each word as VERY_LOUD, LOUD or soft lets the
cinematic formatter uppercase or lowercase it. Recordings differ wildly in
gain (phone line vs. browser mic), so fixed dB cutoffs alone misfire:
thresholds adapt to each file's own RMS distribution.

HOW: The file is decoded to PCM. RMS over 50 ms frames of the whole
buffer gives a baseline mean/std, from which three thresholds are derived
(each clamped to an absolute dBFS floor or ceiling). For each timed word
the window RMS gives loudness_db and a z-score. A local reference (mean dB
of the adjacent timed words) gives a relative boost. The first matching
tier rule assigns the tag, and an emphasis score blends the three signals.

RULES:
- words empty or not a list → returned unchanged, nothing decoded
- loud       = max(LOUD_FLOOR_DB,       db(mean + 1*std))
- very_loud  = max(VERY_LOUD_FLOOR_DB,  db(mean + 2*std))
- soft       = min(SOFT_CEILING_DB,     db(max(1, mean - 1*std)))
- VERY_LOUD if db >= very_loud or z >= 2 or boost >= 6
- LOUD      if db >= loud      or z >= 1 or boost >= 3
- soft      if db <= soft      or z <= -1
- tags are only assigned when db is finite
- untimed words (missing/inverted timestamps) keep tag None, no loudness
- emphasis_score is finite, >= 0, rounded to 3 decimals
- callers' word objects are never mutated
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import numpy as np

from cinematic_transcript import config
from cinematic_transcript.audio.decoder import FfmpegDecoder, PCMDecoder
from cinematic_transcript.core.ir import AnnotatedWord, BaselineStats, Word
from cinematic_transcript.core.pcm import (
    compute_rms,
    frame_rms,
    mean_std,
    pcm_to_samples,
    to_db,
)

logger = logging.getLogger(__name__)

WordLike = Union[Word, dict]


@dataclass(frozen=True)
class LoudnessSettings:
    """Tunable constants for baseline, thresholds, tiers and emphasis.

    Defaults come from config; tests build variants with dataclasses.replace.
    """

    sample_rate: int = config.SAMPLE_RATE_HZ
    frame_ms: int = config.BASELINE_FRAME_MS
    loud_floor_db: float = config.LOUD_FLOOR_DB
    very_loud_floor_db: float = config.VERY_LOUD_FLOOR_DB
    soft_ceiling_db: float = config.SOFT_CEILING_DB
    loud_std: float = config.LOUD_STD_MULTIPLIER
    very_loud_std: float = config.VERY_LOUD_STD_MULTIPLIER
    soft_std: float = config.SOFT_STD_MULTIPLIER
    loud_z: float = config.LOUD_Z
    very_loud_z: float = config.VERY_LOUD_Z
    soft_z: float = config.SOFT_Z
    loud_boost_db: float = config.LOUD_BOOST_DB
    very_loud_boost_db: float = config.VERY_LOUD_BOOST_DB
    emphasis_z_divisor: float = config.EMPHASIS_Z_DIVISOR
    emphasis_boost_divisor: float = config.EMPHASIS_BOOST_DIVISOR
    emphasis_decimals: int = config.EMPHASIS_DECIMALS

    @property
    def frame_samples(self) -> int:
        return max(1, int(round(self.frame_ms / 1000.0 * self.sample_rate)))


DEFAULT_LOUDNESS = LoudnessSettings()


@dataclass(frozen=True)
class LoudnessThresholds:
    """Adaptive dBFS thresholds for one recording."""

    loud_db: float
    very_loud_db: float
    soft_db: float


def compute_baseline(samples: np.ndarray, settings: LoudnessSettings = DEFAULT_LOUDNESS) -> BaselineStats:
    """Mean/std of per-frame RMS across the whole buffer."""
    return mean_std(frame_rms(samples, settings.frame_samples))


def compute_thresholds(
    baseline: BaselineStats,
    settings: LoudnessSettings = DEFAULT_LOUDNESS,
) -> LoudnessThresholds:
    mean, std = baseline.mean, baseline.std
    return LoudnessThresholds(
        loud_db=max(settings.loud_floor_db, to_db(mean + settings.loud_std * std)),
        very_loud_db=max(settings.very_loud_floor_db, to_db(mean + settings.very_loud_std * std)),
        soft_db=min(settings.soft_ceiling_db, to_db(max(1.0, mean - settings.soft_std * std))),
    )


def classify_loudness(
    loudness_db: float,
    z_score: float,
    relative_boost_db: float,
    thresholds: LoudnessThresholds,
    settings: LoudnessSettings = DEFAULT_LOUDNESS,
) -> Optional[str]:
    """Return the loudness tag for one word; first matching tier wins."""
    if not math.isfinite(loudness_db):
        return None
    if (
        loudness_db >= thresholds.very_loud_db
        or z_score >= settings.very_loud_z
        or relative_boost_db >= settings.very_loud_boost_db
    ):
        return config.TAG_VERY_LOUD
    if (
        loudness_db >= thresholds.loud_db
        or z_score >= settings.loud_z
        or relative_boost_db >= settings.loud_boost_db
    ):
        return config.TAG_LOUD
    if loudness_db <= thresholds.soft_db or z_score <= settings.soft_z:
        return config.TAG_SOFT
    return None


def emphasis_score(
    loudness_db: float,
    z_score: float,
    relative_boost_db: float,
    thresholds: LoudnessThresholds,
    settings: LoudnessSettings = DEFAULT_LOUDNESS,
) -> float:
    """Blend absolute level, outlier-ness and local boost into one score."""
    absolute = 0.0
    if math.isfinite(loudness_db):
        span = max(1.0, thresholds.very_loud_db - thresholds.soft_db)
        absolute = (loudness_db - thresholds.soft_db) / span
    terms = [
        max(0.0, absolute),
        max(0.0, z_score / settings.emphasis_z_divisor),
        max(0.0, relative_boost_db / settings.emphasis_boost_divisor),
    ]
    score = sum(t for t in terms if math.isfinite(t))
    if not math.isfinite(score):
        return 0.0
    return round(score, settings.emphasis_decimals)


def _word_rms(samples: np.ndarray, word: Word, sample_rate: int) -> float:
    start_sample = max(0, int(math.floor(word.start / 1000.0 * sample_rate)))
    end_sample = min(int(math.floor(word.end / 1000.0 * sample_rate)), len(samples))
    count = max(1, end_sample - start_sample)
    return compute_rms(samples, start_sample, count)


def _local_reference_db(word_db: Sequence[Optional[float]], idx: int, fallback_db: float) -> float:
    """Mean dB of the timed words directly before and after idx."""
    neighbours = [
        word_db[j]
        for j in (idx - 1, idx + 1)
        if 0 <= j < len(word_db) and word_db[j] is not None
    ]
    if not neighbours:
        return fallback_db
    return sum(neighbours) / len(neighbours)


def _coerce_words(words: Sequence[WordLike]) -> List[Word]:
    return [Word.coerce(w) for w in words]


def annotate_pcm(
    pcm: bytes,
    words: Sequence[WordLike],
    settings: LoudnessSettings = DEFAULT_LOUDNESS,
) -> List[AnnotatedWord]:
    """Annotate words with loudness from an in-memory mono s16le buffer.

    Pure function of (pcm, words, settings): two calls with the same input
    give equal output.

    Args:
        pcm: Mono, signed 16-bit little-endian samples at settings.sample_rate.
        words: Word objects or provider word dicts, in transcript order.
        settings: Threshold/tier constants.

    Returns:
        One new AnnotatedWord per input word, in the same order.
    """
    parsed = _coerce_words(words)
    samples = pcm_to_samples(pcm)
    baseline = compute_baseline(samples, settings)
    thresholds = compute_thresholds(baseline, settings)

    # First pass: per-word RMS for every timed word, None for the rest
    word_rms: List[Optional[float]] = [
        _word_rms(samples, w, settings.sample_rate) if w.has_valid_timing() else None
        for w in parsed
    ]
    word_db: List[Optional[float]] = [None if r is None else to_db(r) for r in word_rms]

    annotated: List[AnnotatedWord] = []
    for idx, word in enumerate(parsed):
        rms = word_rms[idx]
        if rms is None:
            annotated.append(AnnotatedWord.from_word(word))
            continue

        loudness_db = word_db[idx]
        z_score = (rms - baseline.mean) / baseline.std if baseline.std > 0 else 0.0
        local_ref_db = _local_reference_db(word_db, idx, thresholds.loud_db)
        if math.isfinite(loudness_db) and math.isfinite(local_ref_db):
            relative_boost_db = loudness_db - local_ref_db
        else:
            relative_boost_db = 0.0

        annotated.append(AnnotatedWord.from_word(
            word,
            loudness_db=loudness_db,
            loudness_tag=classify_loudness(loudness_db, z_score, relative_boost_db, thresholds, settings),
            emphasis_score=emphasis_score(loudness_db, z_score, relative_boost_db, thresholds, settings),
        ))

    return annotated


async def annotate_word_loudness(
    audio_path: Union[str, Path],
    words: Any,
    decoder: Optional[PCMDecoder] = None,
    settings: LoudnessSettings = DEFAULT_LOUDNESS,
) -> Any:
    """Decode audio_path and annotate words with loudness tags.

    WHY: This is the entry point the transcription pipeline calls once the
    provider has returned word timings.

    HOW: Returns words untouched when there is nothing to annotate,
    otherwise decodes through the injected decoder (ffmpeg by default) and
    delegates to annotate_pcm.

    RULES:
    - words empty or not a list → the same object is returned
    - DecodeError from the decoder propagates; callers treat it as
      recoverable and keep the original words
    - an empty decoded buffer → the same object is returned

    Args:
        audio_path: Any file the decoder can read.
        words: Provider words (dicts or Word objects).
        decoder: PCM decoder; FfmpegDecoder() when omitted.
        settings: Threshold/tier constants.

    Returns:
        A list of AnnotatedWord, or ``words`` itself for the no-op cases.
    """
    if not isinstance(words, list) or not words:
        return words

    decoder = decoder or FfmpegDecoder()
    pcm = await decoder.decode(audio_path, sample_rate=settings.sample_rate)
    if not pcm:
        logger.warning("Decoder returned no PCM for %s; skipping loudness annotation", audio_path)
        return words

    annotated = annotate_pcm(pcm, words, settings)
    logger.info(
        "Annotated %d words from %s (%d tagged)",
        len(annotated),
        audio_path,
        sum(1 for w in annotated if w.loudness_tag),
    )
    return annotated
