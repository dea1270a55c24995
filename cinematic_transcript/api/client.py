"""Async HTTP client for the AssemblyAI pre-recorded transcription API.

WHY: Uploaded voice messages are transcribed by AssemblyAI, which returns
the text plus word-level timings the loudness analyzer and cinematic
formatter need. This module hides the upload → create → poll → fetch
sequence behind one client class so callers (CLI, tests) never deal with
HTTP details.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. AssemblyAIClient is an
async context manager — enter it to get an authenticated client, exit to
close the connection pool. Each API step is a separate method;
transcribe() chains them and always deletes the remote transcript.

RULES:
- Always use the async context manager (async with AssemblyAIClient() as client:)
- Auth header is the raw API key ("authorization: <key>")
- Language detection is requested whenever no language_code is given
- Polling uses exponential backoff: 2s initial, 1.5x factor, 15s max, 60min timeout
- Status callback (on_status) is optional; when provided, called with status strings
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx

from cinematic_transcript.api.models import TranscriptResult, TranscriptStatus
from cinematic_transcript.config import ASSEMBLYAI_BASE_URL, load_api_key

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_POLL_INITIAL_INTERVAL_S = 2.0
_POLL_BACKOFF_FACTOR = 1.5
_POLL_MAX_INTERVAL_S = 15.0
_POLL_TIMEOUT_S = 60 * 60  # 60 minutes


class AssemblyAIError(Exception):
    """Raised when the AssemblyAI API returns an error response.

    RULES:
    - Always include status_code and message
    - message is the response body text or a summary
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"AssemblyAI API error {status_code}: {message}")


class TranscriptionError(Exception):
    """Raised when a transcript job ends in the "error" status."""


class TranscriptionTimeoutError(TimeoutError):
    """Raised when polling exceeds the maximum timeout."""


class AssemblyAIClient:
    """Async client for the AssemblyAI transcript API.

    RULES:
    - Use as: async with AssemblyAIClient() as client: ...
    - api_key defaults to load_api_key() from .env
    - base_url defaults to ASSEMBLYAI_BASE_URL from config
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        poll_initial_interval_s: float = _POLL_INITIAL_INTERVAL_S,
        poll_timeout_s: float = _POLL_TIMEOUT_S,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or ASSEMBLYAI_BASE_URL).rstrip("/")
        self._transport = transport
        self._poll_initial_interval_s = poll_initial_interval_s
        self._poll_timeout_s = poll_timeout_s
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> AssemblyAIClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"authorization": self._api_key},
            timeout=httpx.Timeout(300.0, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "AssemblyAIClient must be used as an async context manager: "
                "async with AssemblyAIClient() as client: ..."
            )
        return self._client

    # ------------------------------------------------------------------
    # Step 1: Upload file
    # ------------------------------------------------------------------

    async def upload_file(
        self,
        file_path: Path,
        on_status: Callable[[str], None] | None = None,
    ) -> str:
        """Upload a local audio file and return its private upload URL.

        RULES:
        - The body is the raw file bytes (voice messages are small)
        - Returns the upload_url string from the response
        - Raises AssemblyAIError on non-2xx responses
        """
        client = self._ensure_client()
        if on_status:
            on_status("Uploading file...")

        file_path = Path(file_path)
        resp = await client.post(
            "/upload",
            content=file_path.read_bytes(),
            headers={"content-type": "application/octet-stream"},
        )
        if resp.status_code not in (200, 201):
            raise AssemblyAIError(resp.status_code, resp.text)

        return resp.json()["upload_url"]

    # ------------------------------------------------------------------
    # Step 2: Create transcript
    # ------------------------------------------------------------------

    async def create_transcript(
        self,
        audio_url: str,
        language_code: str | None = None,
        punctuate: bool = True,
        format_text: bool = True,
        speaker_labels: bool = False,
        word_boost: list[str] | None = None,
        boost_param: str = "default",
        sentiment_analysis: bool = False,
        auto_highlights: bool = False,
        iab_categories: bool = False,
        entity_detection: bool = False,
        on_status: Callable[[str], None] | None = None,
    ) -> str:
        """Create a transcript job and return its ID.

        RULES:
        - language_code given → sent as-is; otherwise language_detection=true
        - word_boost and boost_param are only sent when word_boost is non-empty
        - Audio intelligence flags (sentiment, highlights, IAB, entities) are
          always sent; their results land on TranscriptResult
        - Raises AssemblyAIError on non-2xx responses
        """
        client = self._ensure_client()
        if on_status:
            on_status("Creating transcript...")

        body: dict[str, Any] = {
            "audio_url": audio_url,
            "punctuate": punctuate,
            "format_text": format_text,
            "speaker_labels": speaker_labels,
            "sentiment_analysis": sentiment_analysis,
            "auto_highlights": auto_highlights,
            "iab_categories": iab_categories,
            "entity_detection": entity_detection,
        }
        if word_boost:
            body["word_boost"] = list(word_boost)
            body["boost_param"] = boost_param
        if language_code:
            body["language_code"] = language_code
        else:
            body["language_detection"] = True

        resp = await client.post("/transcript", json=body)
        if resp.status_code not in (200, 201):
            raise AssemblyAIError(resp.status_code, resp.text)

        return resp.json()["id"]

    # ------------------------------------------------------------------
    # Step 3: Poll until complete
    # ------------------------------------------------------------------

    async def poll_until_complete(
        self,
        transcript_id: str,
        on_status: Callable[[str], None] | None = None,
    ) -> TranscriptResult:
        """Poll a transcript job until it completes, then return the result.

        RULES:
        - Returns TranscriptResult parsed from the final "completed" response
        - Raises TranscriptionError when status is "error"
        - Raises TranscriptionTimeoutError after the poll timeout
        """
        client = self._ensure_client()
        interval = self._poll_initial_interval_s
        start_time = time.monotonic()

        while True:
            elapsed = time.monotonic() - start_time
            if elapsed > self._poll_timeout_s:
                raise TranscriptionTimeoutError(
                    f"Transcript {transcript_id} timed out after "
                    f"{elapsed:.0f}s (limit: {self._poll_timeout_s:.0f}s)"
                )

            resp = await client.get(f"/transcript/{transcript_id}")
            if resp.status_code != 200:
                raise AssemblyAIError(resp.status_code, resp.text)

            data = resp.json()
            status = TranscriptStatus.from_dict(data)

            if on_status:
                elapsed_min = int(elapsed) // 60
                elapsed_sec = int(elapsed) % 60
                if status.status == "queued":
                    on_status("Transcript queued...")
                elif status.status == "processing":
                    on_status(
                        f"Transcribing... (elapsed: {elapsed_min}m {elapsed_sec:02d}s)"
                    )
                elif status.status == "completed":
                    on_status("Transcription complete.")
                elif status.status == "error":
                    on_status(f"Transcription error: {status.error}")

            if status.status == "completed":
                return TranscriptResult.from_dict(data)

            if status.status == "error":
                raise TranscriptionError(f"Transcription failed with status: error ({status.error})")

            await asyncio.sleep(interval)
            interval = min(interval * _POLL_BACKOFF_FACTOR, _POLL_MAX_INTERVAL_S)

    # ------------------------------------------------------------------
    # Step 4: Cleanup
    # ------------------------------------------------------------------

    async def delete_transcript(
        self,
        transcript_id: str,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        """Delete the transcript from AssemblyAI (best-effort)."""
        client = self._ensure_client()
        if on_status:
            on_status("Cleaning up...")
        try:
            resp = await client.delete(f"/transcript/{transcript_id}")
        except httpx.HTTPError:
            logger.warning("Failed to delete transcript %s", transcript_id, exc_info=True)
            return
        if resp.status_code >= 400:
            logger.warning("Deleting transcript %s returned %s", transcript_id, resp.status_code)

    # ------------------------------------------------------------------
    # Full workflow
    # ------------------------------------------------------------------

    async def transcribe(
        self,
        file_path: Path,
        language_code: str | None = None,
        speaker_labels: bool = False,
        keep_remote: bool = False,
        on_status: Callable[[str], None] | None = None,
        **options: Any,
    ) -> TranscriptResult:
        """Upload, transcribe and fetch one file.

        RULES:
        - options are forwarded to create_transcript (word_boost,
          sentiment_analysis, auto_highlights, ...)
        - The remote transcript is deleted afterwards unless keep_remote
        - The detected language is logged when detection ran
        """
        audio_url = await self.upload_file(file_path, on_status=on_status)
        transcript_id = await self.create_transcript(
            audio_url,
            language_code=language_code,
            speaker_labels=speaker_labels,
            on_status=on_status,
            **options,
        )
        try:
            result = await self.poll_until_complete(transcript_id, on_status=on_status)
        finally:
            if not keep_remote:
                await self.delete_transcript(transcript_id, on_status=on_status)

        if not language_code:
            logger.info(
                "Detected language: %s (confidence: %s)",
                result.language_code, result.language_confidence,
            )
        return result
