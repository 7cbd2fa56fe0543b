"""
OpenCode adapter.

OpenCode records resemble canonical ones but have no per-record uuid, and
tool calls and results can arrive as their own record types (tool_use,
tool_result) instead of blocks inside an assistant/user turn. Message ids are
{sessionId}-{epochMillis}.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from session_normalizer.normalization.assembly import assemble_session
from session_normalizer.normalization.detection import is_opencode_record, probe_content
from session_normalizer.providers.common import (
    build_record,
    default_session_id,
    dict_field,
    messages_from_records,
    string_field,
    timestamp_millis,
)
from session_normalizer.schemas.messages import ParsedMessage, ParsedSession
from session_normalizer.schemas.records import CanonicalRecord

PROVIDER = 'opencode'

_RECORD_TYPES = {
    'user': 'user',
    'assistant': 'assistant',
    'tool_use': 'assistant',
    'tool_result': 'user',
}


def to_canonical(record: Mapping[str, Any]) -> CanonicalRecord | None:
    message = dict_field(record, 'message') or {}
    content = message.get('content')
    session_id = default_session_id(record)
    record_type = _RECORD_TYPES.get(str(record.get('type')), 'meta')

    return build_record(
        PROVIDER,
        uuid=f'{session_id}-{timestamp_millis(record)}',
        timestamp=record.get('timestamp'),
        type=record_type,
        sessionId=session_id,
        message={
            'role': string_field(message, 'role') or record_type,
            'content': content if isinstance(content, str | list) else '',
            'model': string_field(message, 'model'),
            'usage': dict_field(message, 'usage'),
        },
        cwd=string_field(record, 'cwd'),
    )


class OpenCodeParser:
    name = PROVIDER
    provider_name = PROVIDER
    aliases: tuple[str, ...] = ()

    def detect(self, record: Mapping[str, Any]) -> bool:
        return is_opencode_record(record)

    def can_parse(self, content: str) -> bool:
        return probe_content(content, self.detect)

    def extract_session_id(self, record: Mapping[str, Any]) -> str | None:
        return default_session_id(record)

    def transform(self, record: Mapping[str, Any]) -> list[ParsedMessage]:
        return messages_from_records([to_canonical(record)])

    def parse_session(self, content: str) -> ParsedSession:
        return assemble_session(content, self)
