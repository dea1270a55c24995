"""PCM decoders — turn an audio file into mono 16 kHz s16le bytes.

WHY: The loudness analyzer needs raw samples, but the archive stores
whatever container the browser or phone bridge produced (webm, m4a, mp3).
Decoding is delegated to ffmpeg. Keeping it behind a small decoder
interface lets the analyzer run against synthetic buffers in tests and
against any other decoder a host prefers.

HOW: PCMDecoder is a Protocol with one async method. FfmpegDecoder spawns
ffmpeg through asyncio, buffers stdout fully, and converts process
failures into DecodeError. StaticPCMDecoder returns a buffer it was given.

RULES:
- Output is always mono, signed 16-bit little-endian at the requested rate
- Executable not found → DecodeError
- Non-zero exit with no output bytes → DecodeError (last 5 stderr lines)
- Non-zero exit with some output → the partial output is returned
- No cancellation; the call resolves once the process closes
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import List, Optional, Protocol, Union

from cinematic_transcript.config import FFMPEG_BINARY, SAMPLE_RATE_HZ

logger = logging.getLogger(__name__)

_STDERR_TAIL_LINES = 5


class DecodeError(Exception):
    """Raised when an audio file cannot be decoded to PCM.

    WHY: Loudness tagging is an enhancement. Callers need a typed error to
    tell "no PCM available" apart from real bugs, and skip annotation.

    RULES:
    - path: the file that failed to decode
    - returncode: process exit code, or None when the process never ran
    """

    def __init__(self, path: Union[str, Path], message: str, returncode: Optional[int] = None) -> None:
        self.path = str(path)
        self.returncode = returncode
        super().__init__(message)


class PCMDecoder(Protocol):
    """Anything that can decode a file to mono s16le PCM bytes."""

    async def decode(self, path: Union[str, Path], sample_rate: int = SAMPLE_RATE_HZ) -> bytes:
        ...


class FfmpegDecoder:
    """Decode audio files by piping them through the ffmpeg executable.

    RULES:
    - binary defaults to FFMPEG_BINARY from config (PATH-resolved)
    - the whole stdout stream is held in memory before returning
    """

    def __init__(self, binary: Optional[str] = None) -> None:
        self.binary = binary or FFMPEG_BINARY

    def build_args(self, path: Union[str, Path], sample_rate: int) -> List[str]:
        return [
            "-nostdin",
            "-i", str(path),
            "-ac", "1",
            "-ar", str(sample_rate),
            "-f", "s16le",
            "pipe:1",
        ]

    async def decode(self, path: Union[str, Path], sample_rate: int = SAMPLE_RATE_HZ) -> bytes:
        executable = shutil.which(self.binary)
        if executable is None:
            raise DecodeError(path, "ffmpeg executable not found: {}".format(self.binary))

        try:
            proc = await asyncio.create_subprocess_exec(
                executable,
                *self.build_args(path, sample_rate),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise DecodeError(path, "failed to start ffmpeg: {}".format(e)) from e

        stdout, stderr = await proc.communicate()
        code = proc.returncode

        if code != 0:
            tail = "\n".join(
                stderr.decode("utf-8", errors="replace").strip().splitlines()[-_STDERR_TAIL_LINES:]
            )
            if not stdout:
                raise DecodeError(
                    path,
                    "ffmpeg exited with code {}: {}".format(code, tail),
                    returncode=code,
                )
            logger.warning(
                "ffmpeg exited with code %s for %s but produced %d bytes; using partial output",
                code, path, len(stdout),
            )

        logger.debug("Decoded %s: %d bytes of PCM at %d Hz", path, len(stdout), sample_rate)
        return stdout


class StaticPCMDecoder:
    """Decoder that returns a buffer already in memory.

    WHY: Tests and hosts that captured PCM themselves (e.g. a live call
    bridge) can run the analyzer without touching the filesystem.
    """

    def __init__(self, pcm: bytes) -> None:
        self.pcm = pcm

    async def decode(self, path: Union[str, Path], sample_rate: int = SAMPLE_RATE_HZ) -> bytes:
        return self.pcm
