"""
Parser registry - selects the parser for a session.

Selection precedence for parse_session(content, provider_hint):
1. provider hint: exact name/alias match, then substring match either way
2. auto-detection over the registered parsers, in registry order
3. the generic best-effort parser, but only when a hint was given
4. otherwise NoSuitableParserError

Registry order is detection order: custom parsers first (register_parser
prepends), then the built-ins from the most specific fingerprint to the most
general.

The module-level `parser_registry` is the only process-wide state in the
package. Register custom parsers before parsing concurrently; lookups never
mutate the registry.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from session_normalizer.exceptions import NoSuitableParserError
from session_normalizer.normalization.detection import detect_format
from session_normalizer.normalization.reader import validate_content
from session_normalizer.providers import (
    CanonicalParser,
    ClaudeCodeParser,
    CodexParser,
    CopilotParser,
    GeminiParser,
    GenericParser,
    OpenCodeParser,
    SessionParser,
)
from session_normalizer.schemas.messages import ParsedSession

__all__ = [
    'ParserRegistry',
    'parse_session',
    'parser_registry',
    'register_parser',
]

logger = logging.getLogger(__name__)


def _normalize_hint(hint: str) -> str:
    return hint.lower().strip()


class ParserRegistry:
    """Ordered collection of parsers with hint lookup and auto-detection."""

    def __init__(self, parsers: Sequence[SessionParser] | None = None, fallback: SessionParser | None = None) -> None:
        self._parsers: list[SessionParser] = list(parsers) if parsers is not None else self.builtin_parsers()
        self._fallback: SessionParser = fallback or GenericParser()

    @staticmethod
    def builtin_parsers() -> list[SessionParser]:
        """Built-ins in detection order."""
        return [
            GeminiParser(),
            CodexParser(),
            CopilotParser(),
            CanonicalParser(),
            ClaudeCodeParser(),
            OpenCodeParser(),
        ]

    @property
    def parsers(self) -> tuple[SessionParser, ...]:
        return tuple(self._parsers)

    def register_parser(self, parser: SessionParser) -> None:
        """Register a custom parser ahead of every existing one (first match wins)."""
        self._parsers.insert(0, parser)
        logger.debug('Registered parser %s', parser.name)

    def _names(self, parser: SessionParser) -> list[str]:
        return [_normalize_hint(name) for name in (parser.name, parser.provider_name, *parser.aliases)]

    def get_parser(self, hint: str) -> SessionParser | None:
        """Resolve a provider hint: exact name/alias match first, then substring match either way."""
        normalized = _normalize_hint(hint)
        if not normalized:
            return None

        for parser in self._parsers:
            if normalized in self._names(parser):
                return parser

        for parser in self._parsers:
            if any(name in normalized or normalized in name for name in self._names(parser)):
                return parser

        return None

    def has_parser(self, hint: str) -> bool:
        return self.get_parser(hint) is not None

    def detect_parser(self, content: str) -> SessionParser | None:
        return detect_format(content, self._parsers)

    def can_parse(self, content: str) -> bool:
        return self.detect_parser(content) is not None

    def registered_providers(self) -> list[str]:
        """Provider names in registry order, without duplicates."""
        return list(dict.fromkeys(parser.provider_name for parser in self._parsers))

    def resolve_parser(self, content: str, provider_hint: str | None = None) -> SessionParser:
        """
        Pick the parser for content.

        Raises:
            NoSuitableParserError: No hint match, nothing detected, and no hint given
        """
        if provider_hint:
            parser = self.get_parser(provider_hint)
            if parser is not None:
                logger.debug('Using parser %s for hint %r', parser.name, provider_hint)
                return parser

        parser = self.detect_parser(content)
        if parser is not None:
            return parser

        if provider_hint:
            logger.debug('Falling back to %s parser for unknown hint %r', self._fallback.name, provider_hint)
            return self._fallback

        raise NoSuitableParserError()

    def parse_session(self, content: str, provider_hint: str | None = None) -> ParsedSession:
        """
        Parse content into a ParsedSession, selecting the parser by hint or detection.

        Raises:
            EmptyContentError: Content is empty or whitespace-only
            InvalidJsonLineError: A line in the strict prefix is not valid JSON
            NoSuitableParserError: No parser could be selected
        """
        validate_content(content)
        return self.resolve_parser(content, provider_hint).parse_session(content)


parser_registry = ParserRegistry()


def parse_session(content: str, provider_hint: str | None = None) -> ParsedSession:
    return parser_registry.parse_session(content, provider_hint)


def register_parser(parser: SessionParser) -> None:
    parser_registry.register_parser(parser)
