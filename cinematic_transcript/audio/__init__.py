"""Audio decoding package — file to raw PCM for the loudness analyzer."""

from cinematic_transcript.audio.decoder import (
    DecodeError,
    FfmpegDecoder,
    PCMDecoder,
    StaticPCMDecoder,
)

__all__ = ["DecodeError", "FfmpegDecoder", "PCMDecoder", "StaticPCMDecoder"]
