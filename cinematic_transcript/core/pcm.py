"""Numeric helpers for raw 16-bit PCM: RMS, baseline statistics, dBFS.

WHY: The loudness analyzer works on the decoded byte buffer directly. These
helpers keep the arithmetic (sample decoding, windowed RMS, population
statistics, dB conversion) in one small, independently testable place.

HOW: The buffer is viewed as a little-endian int16 numpy array without
copying. RMS is computed in float64 so squared 16-bit samples never
overflow.

RULES:
- Buffers are mono s16le; a trailing odd byte is ignored
- compute_rms() clamps its window to the buffer and returns 0.0 when empty
- frame_rms() only covers complete frames
- mean_std() uses the population standard deviation (ddof=0)
- to_db(rms) is -inf for rms <= 0, otherwise 20*log10(rms / FULL_SCALE)
"""

from __future__ import annotations

import math

import numpy as np

from cinematic_transcript.config import FULL_SCALE, SAMPLE_WIDTH_BYTES
from cinematic_transcript.core.ir import BaselineStats

_PCM_DTYPE = np.dtype("<i2")


def pcm_to_samples(pcm: bytes) -> np.ndarray:
    """View a mono s16le byte buffer as an int16 sample array."""
    usable = len(pcm) - (len(pcm) % SAMPLE_WIDTH_BYTES)
    if usable <= 0:
        return np.zeros(0, dtype=_PCM_DTYPE)
    return np.frombuffer(pcm, dtype=_PCM_DTYPE, count=usable // SAMPLE_WIDTH_BYTES)


def compute_rms(samples: np.ndarray, start: int, count: int) -> float:
    """Root-mean-square of samples[start:start + count], clamped to the buffer."""
    start = max(0, start)
    stop = min(len(samples), start + max(0, count))
    if stop <= start:
        return 0.0
    window = samples[start:stop].astype(np.float64)
    return float(np.sqrt(np.mean(window * window)))


def frame_rms(samples: np.ndarray, frame_samples: int) -> np.ndarray:
    """RMS of every complete frame of frame_samples samples."""
    frame_samples = max(1, frame_samples)
    n_frames = len(samples) // frame_samples
    if n_frames == 0:
        return np.zeros(0, dtype=np.float64)
    frames = samples[: n_frames * frame_samples].astype(np.float64)
    frames = frames.reshape(n_frames, frame_samples)
    return np.sqrt(np.mean(frames * frames, axis=1))


def mean_std(values: np.ndarray) -> BaselineStats:
    if len(values) == 0:
        return BaselineStats(mean=0.0, std=0.0)
    return BaselineStats(mean=float(np.mean(values)), std=float(np.std(values)))


def to_db(rms: float) -> float:
    if rms <= 0:
        return float("-inf")
    return 20.0 * math.log10(rms / FULL_SCALE)
