"""Unit tests for the PCM arithmetic helpers.

WHY: Every loudness value is built from these helpers; an off-by-one in
frame slicing or a sample-std instead of a population-std would silently
shift every threshold.

RULES:
- Square waves of amplitude A have RMS exactly A.
"""

import math

import numpy as np
import pytest

from cinematic_transcript.core.pcm import (
    compute_rms,
    frame_rms,
    mean_std,
    pcm_to_samples,
    to_db,
)

from conftest import build_pcm


class TestPcmToSamples:

    def test_little_endian_int16(self):
        samples = pcm_to_samples(b"\x01\x00\xff\xff\x00\x80")
        assert list(samples) == [1, -1, -32768]

    def test_trailing_odd_byte_is_ignored(self):
        samples = pcm_to_samples(b"\x01\x00\x02")
        assert list(samples) == [1]

    def test_empty(self):
        assert len(pcm_to_samples(b"")) == 0
        assert len(pcm_to_samples(b"\x01")) == 0


class TestComputeRms:

    def test_square_wave_rms_equals_amplitude(self):
        samples = pcm_to_samples(build_pcm([(100, 3000)]))
        assert compute_rms(samples, 0, len(samples)) == pytest.approx(3000.0)

    def test_full_scale_does_not_overflow(self):
        samples = pcm_to_samples(build_pcm([(50, 32767)]))
        assert compute_rms(samples, 0, len(samples)) == pytest.approx(32767.0)

    def test_window_clamped_to_buffer(self):
        samples = pcm_to_samples(build_pcm([(10, 1000)]))
        assert compute_rms(samples, 100, 10_000) == pytest.approx(1000.0)

    def test_window_past_end_is_zero(self):
        samples = pcm_to_samples(build_pcm([(10, 1000)]))
        assert compute_rms(samples, len(samples) + 5, 10) == 0.0


class TestFrameRms:

    def test_only_complete_frames(self):
        # 120 ms at 16 kHz = 1920 samples → two complete 800-sample frames
        samples = pcm_to_samples(build_pcm([(50, 1000), (50, 2000), (20, 4000)]))
        rms = frame_rms(samples, 800)
        assert len(rms) == 2
        assert rms[0] == pytest.approx(1000.0)
        assert rms[1] == pytest.approx(2000.0)

    def test_shorter_than_one_frame(self):
        samples = pcm_to_samples(build_pcm([(10, 1000)]))
        assert len(frame_rms(samples, 800)) == 0


class TestMeanStd:

    def test_population_std(self):
        stats = mean_std(np.array([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]))
        assert stats.mean == pytest.approx(5.0)
        assert stats.std == pytest.approx(2.0)

    def test_empty_is_zero(self):
        stats = mean_std(np.array([]))
        assert stats.mean == 0.0
        assert stats.std == 0.0


class TestToDb:

    def test_full_scale_is_zero_db(self):
        assert to_db(32768.0) == pytest.approx(0.0)

    def test_half_scale(self):
        assert to_db(16384.0) == pytest.approx(-6.0206, abs=1e-4)

    def test_zero_and_negative_are_minus_infinity(self):
        assert to_db(0.0) == -math.inf
        assert to_db(-1.0) == -math.inf
