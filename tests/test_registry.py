"""Tests for parser selection: hints, detection, fallback and custom parsers."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import pytest

import session_normalizer
from session_normalizer.exceptions import EmptyContentError, InvalidJsonLineError, NoSuitableParserError
from session_normalizer.normalization.assembly import assemble_session
from session_normalizer.providers import CanonicalParser, SessionParser
from session_normalizer.registry import ParserRegistry
from session_normalizer.schemas.messages import ParsedMessage, ParsedSession

CANONICAL_LINE = json.dumps(
    {
        'uuid': 'u1',
        'sessionId': 's1',
        'timestamp': '2025-01-15T10:00:00Z',
        'type': 'user',
        'message': {'role': 'user', 'content': 'hi'},
    }
)
UNKNOWN_LINE = json.dumps({'timestamp': '2025-01-15T10:00:00Z', 'role': 'user', 'text': 'hello'})


class AcmeParser:
    """Minimal custom parser recognizing records with an "acme" key."""

    name = 'acme'
    provider_name = 'acme-agent'
    aliases: tuple[str, ...] = ('acme-cli',)

    def detect(self, record: Mapping[str, Any]) -> bool:
        return 'acme' in record

    def can_parse(self, content: str) -> bool:
        return 'acme' in content

    def extract_session_id(self, record: Mapping[str, Any]) -> str | None:
        return None

    def transform(self, record: Mapping[str, Any]) -> list[ParsedMessage]:
        return []

    def parse_session(self, content: str) -> ParsedSession:
        return assemble_session(content, self)


@pytest.fixture
def registry() -> ParserRegistry:
    return ParserRegistry()


def test_builtins_in_detection_order(registry: ParserRegistry) -> None:
    assert registry.registered_providers() == [
        'gemini-code',
        'codex',
        'github-copilot',
        'canonical',
        'claude-code',
        'opencode',
    ]


def test_parsers_satisfy_protocol(registry: ParserRegistry) -> None:
    assert all(isinstance(parser, SessionParser) for parser in registry.parsers)
    assert isinstance(AcmeParser(), SessionParser)


@pytest.mark.parametrize(
    ('hint', 'expected'),
    [
        ('codex', 'codex'),
        ('  CODEX ', 'codex'),
        ('claude', 'claude-code'),
        ('claude-code', 'claude-code'),
        ('gemini', 'gemini-code'),
        ('copilot', 'github-copilot'),
        ('github-copilot-cli', 'github-copilot'),
        ('opencode', 'opencode'),
        ('canonical', 'canonical'),
    ],
)
def test_get_parser_by_hint(registry: ParserRegistry, hint: str, expected: str) -> None:
    parser = registry.get_parser(hint)

    assert parser is not None
    assert parser.name == expected


@pytest.mark.parametrize('hint', ['', '   ', 'cursor'])
def test_unknown_hint(registry: ParserRegistry, hint: str) -> None:
    assert registry.get_parser(hint) is None
    assert not registry.has_parser(hint)


def test_hint_wins_over_detection(registry: ParserRegistry) -> None:
    session = registry.parse_session(CANONICAL_LINE, 'claude')

    assert session.provider == 'claude-code'


def test_detection_without_hint(registry: ParserRegistry) -> None:
    session = registry.parse_session(CANONICAL_LINE)

    assert session.provider == 'canonical'
    assert registry.can_parse(CANONICAL_LINE)


def test_unknown_hint_falls_back_to_detection(registry: ParserRegistry) -> None:
    assert registry.parse_session(CANONICAL_LINE, 'cursor').provider == 'canonical'


def test_unknown_hint_and_format_uses_generic(registry: ParserRegistry) -> None:
    session = registry.parse_session(UNKNOWN_LINE, 'cursor')

    assert session.provider == 'generic'
    assert [message.type for message in session.messages] == ['user_input']


def test_no_hint_and_no_format_raises(registry: ParserRegistry) -> None:
    with pytest.raises(NoSuitableParserError, match='No suitable parser found for content'):
        registry.parse_session(UNKNOWN_LINE)


def test_content_is_validated_before_parser_selection(registry: ParserRegistry) -> None:
    with pytest.raises(EmptyContentError):
        registry.parse_session('', 'claude')
    with pytest.raises(InvalidJsonLineError):
        registry.parse_session('not json', 'claude')


def test_register_parser_prepends(registry: ParserRegistry) -> None:
    registry.register_parser(AcmeParser())

    assert registry.registered_providers()[0] == 'acme-agent'
    assert registry.get_parser('acme-cli').name == 'acme'
    assert registry.detect_parser(json.dumps({'acme': 1, 'uuid': 'x'})).name == 'acme'


def test_custom_parser_wins_detection_ties(registry: ParserRegistry) -> None:
    class GreedyParser(CanonicalParser):
        name = 'greedy'
        provider_name = 'greedy'

    registry.register_parser(GreedyParser())

    assert registry.detect_parser(CANONICAL_LINE).name == 'greedy'


def test_custom_fallback() -> None:
    registry = ParserRegistry(parsers=[], fallback=CanonicalParser())

    assert registry.parse_session(CANONICAL_LINE, 'anything').provider == 'canonical'
    with pytest.raises(NoSuitableParserError):
        registry.parse_session(CANONICAL_LINE)


def test_module_level_api() -> None:
    session = session_normalizer.parse_session(CANONICAL_LINE, 'canonical')

    assert session.session_id == 's1'
    assert session_normalizer.parser_registry.has_parser('codex')
