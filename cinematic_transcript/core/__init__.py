"""Core IR, PCM arithmetic, and the loudness analyzer.

WHY: The core package holds the stable heart of the project — the word and
transcript dataclasses and the loudness annotation that the cinematic
formatter relies on. Nothing here knows about HTTP or formatters.

HOW: ir.py defines the data structures, pcm.py the sample-level math,
loudness.py the baseline, thresholds, per-word tagging and emphasis score.

RULES:
- IR dataclasses are the contract — change with care
- Loudness logic is decoder-agnostic — PCM bytes come from an injected decoder
"""
