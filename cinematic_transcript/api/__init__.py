"""AssemblyAI API client package — async interface to the transcription service.

WHY: Voice messages are transcribed by a third-party speech API. This
package encapsulates all provider communication behind an async client
class and returns the project's Word IR.

RULES:
- All HTTP calls go through AssemblyAIClient (no direct httpx usage elsewhere)
- Authentication is via the API key from config
"""

from cinematic_transcript.api.client import AssemblyAIClient
from cinematic_transcript.api.models import TranscriptResult, TranscriptStatus

__all__ = ["AssemblyAIClient", "TranscriptResult", "TranscriptStatus"]
