"""
Generic best-effort parser.

Used only when a provider hint names nothing registered and auto-detection
finds no format. Never auto-detected itself. Each record yields at most one
message built from whatever id/timestamp/type/role/text fields it has.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from session_normalizer.normalization.assembly import assemble_session
from session_normalizer.normalization.decomposer import decompose_records
from session_normalizer.providers.common import (
    build_record,
    default_session_id,
    dict_field,
    string_field,
    synthesize_id,
)
from session_normalizer.schemas.messages import ParsedMessage, ParsedSession

PROVIDER = 'generic'

_USER_ROLES = frozenset({'user', 'human'})
_ASSISTANT_ROLES = frozenset({'assistant', 'model', 'gemini', 'copilot', 'ai'})


def _text_of(content: object) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [part.get('text') for part in content if isinstance(part, dict)]
        return '\n'.join(part for part in parts if isinstance(part, str) and part)
    return ''


def extract_text(record: Mapping[str, Any]) -> str:
    """Text from content, text, or message.content - the first that yields any."""
    message = dict_field(record, 'message') or {}
    for candidate in (record.get('content'), record.get('text'), message.get('content')):
        text = _text_of(candidate)
        if text:
            return text
    return ''


def _record_type(record: Mapping[str, Any]) -> str:
    message = dict_field(record, 'message') or {}
    for candidate in (record.get('role'), message.get('role'), record.get('type')):
        if candidate in _USER_ROLES:
            return 'user'
        if candidate in _ASSISTANT_ROLES:
            return 'assistant'
    return 'meta'


class GenericParser:
    name = PROVIDER
    provider_name = PROVIDER
    aliases: tuple[str, ...] = ()

    def detect(self, record: Mapping[str, Any]) -> bool:
        return False

    def can_parse(self, content: str) -> bool:
        return False

    def extract_session_id(self, record: Mapping[str, Any]) -> str | None:
        return default_session_id(record)

    def transform(self, record: Mapping[str, Any]) -> list[ParsedMessage]:
        record_type = _record_type(record)
        canonical = build_record(
            PROVIDER,
            uuid=string_field(record, 'id') or string_field(record, 'uuid') or synthesize_id(record),
            timestamp=record.get('timestamp'),
            type=record_type,
            sessionId=default_session_id(record),
            message={'role': record_type, 'content': extract_text(record)},
        )
        if canonical is None:
            return []
        return decompose_records([canonical], split=False)

    def parse_session(self, content: str) -> ParsedSession:
        return assemble_session(content, self)
