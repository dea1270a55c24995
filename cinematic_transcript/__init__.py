"""Cinematic Transcript — loudness-aware transcript formatting for voice messages.

WHY: A speech API returns plain text plus word timings, which reads flat.
Voice messages in the archive are shown as "cinematic" transcripts: pauses
become line and paragraph breaks, shouted words are uppercased, whispered
words lowercased, and event tags like [laughter] become stage directions.

HOW: Three-stage pipeline — transcribe (API client or saved provider JSON),
annotate (decode audio to PCM, measure per-word loudness against a
whole-file baseline), format (pluggable formatters over one Transcript IR).

RULES:
- Loudness annotation is best-effort; a decode failure never loses a transcript
- All formatters consume the same Transcript IR
- Word times are milliseconds, exactly as the provider returns them
"""

__version__ = "0.1.0"
