"""Abstract base formatter and output container.

WHY: Every output format consumes the same Transcript IR but produces
different file content. This base class gives the CLI and the pipeline one
interface to run any formatter generically.

HOW: BaseFormatter is an ABC with two requirements — a ``name`` property
and a ``format()`` method. FormatterOutput bundles a file suffix with its
content and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list; single-file formatters return one item
- ``suffix`` starts with a hyphen, e.g. ``"-transcript.txt"``
- The caller is responsible for prepending the source filename stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Union

from cinematic_transcript.core.ir import Transcript


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"-words.json"`` → ``"message-words.json"``.
        content: The file content.
        media_type: MIME type for the content, e.g. ``"text/plain"``.
    """

    suffix: str
    content: Union[str, bytes]
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Cinematic Text'."""

    @abstractmethod
    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        """Convert the Transcript IR into one or more output files."""
