"""
Parser protocol shared by the canonical parser, provider adapters and the
generic fallback.

Adapters are independent classes; they share behavior through module
functions (normalization.assembly, normalization.detection, providers.common),
not through a base class. Anything that satisfies this protocol can be
registered with the ParserRegistry.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from session_normalizer.schemas.messages import ParsedMessage, ParsedSession


@runtime_checkable
class SessionParser(Protocol):
    """
    Capability set of a session parser.

    Implementations:
    - CanonicalParser (canonical.py): logs already in canonical form
    - ClaudeCodeParser, CodexParser, GeminiParser, CopilotParser, OpenCodeParser:
      one adapter per provider log format
    - GenericParser (generic.py): best-effort fallback, never auto-detected
    """

    name: str
    provider_name: str
    aliases: Sequence[str]

    def detect(self, record: Mapping[str, Any]) -> bool:
        """Structural fingerprint of one decoded record."""
        ...

    def can_parse(self, content: str) -> bool:
        """True when any of the leading records matches the fingerprint."""
        ...

    def extract_session_id(self, record: Mapping[str, Any]) -> str | None: ...

    def transform(self, record: Mapping[str, Any]) -> list[ParsedMessage]:
        """Turn one raw record into zero or more canonical messages."""
        ...

    def parse_session(self, content: str) -> ParsedSession: ...
