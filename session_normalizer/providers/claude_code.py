"""
Claude Code adapter.

Claude Code writes one JSON object per line: user and assistant turns carry a
`message` with Anthropic-style content blocks, alongside housekeeping records
(system notices, summaries, file snapshots). Turns map onto canonical records
almost field for field; everything else becomes meta.

- isMeta records (injected caveats, hook output) are skipped entirely
- user records without message content are housekeeping and become meta
- {"parts": [...]} content (an object or its JSON string) is read as text blocks
- assistant records with several tool blocks are split one record per block
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from session_normalizer.normalization.assembly import assemble_session
from session_normalizer.normalization.detection import is_claude_code_record, probe_content
from session_normalizer.providers.common import (
    bool_field,
    build_record,
    default_session_id,
    dict_field,
    messages_from_records,
    string_field,
)
from session_normalizer.schemas.messages import ParsedMessage, ParsedSession
from session_normalizer.schemas.records import CanonicalRecord

PROVIDER = 'claude-code'

# Top-level fields worth keeping for record types without a message
_METADATA_FIELDS = ('subtype', 'level', 'toolUseID', 'leafUuid')


def _parts_blocks(content: Any) -> list[dict[str, str]] | None:
    """
    Unwrap {"parts": [...]} content, as an object or a JSON-encoded string.

    Only text parts survive, as text blocks. Returns None when content has
    another shape.
    """
    if isinstance(content, str):
        if not content.lstrip().startswith('{'):
            return None
        try:
            content = json.loads(content)
        except ValueError:
            return None
    if not isinstance(content, dict) or not isinstance(content.get('parts'), list):
        return None
    return [
        {'type': 'text', 'text': part['text']}
        for part in content['parts']
        if isinstance(part, dict) and part.get('type') == 'text' and isinstance(part.get('text'), str) and part['text']
    ]


def _content_of(record: Mapping[str, Any]) -> str | list[Any]:
    message = dict_field(record, 'message') or {}
    content = message.get('content', record.get('content'))
    if record.get('type') == 'summary':
        content = record.get('summary')
    parts = _parts_blocks(content)
    if parts is not None:
        return parts
    if isinstance(content, str | list):
        return content
    return ''


def _record_type(record: Mapping[str, Any], content: str | list[Any]) -> str:
    record_type = record.get('type')
    if record_type == 'assistant':
        return 'assistant'
    if record_type == 'user':
        return 'user' if content else 'meta'
    return 'meta'


def to_canonical(record: Mapping[str, Any]) -> CanonicalRecord | None:
    message = dict_field(record, 'message') or {}
    content = _content_of(record)
    provider_metadata = {key: record[key] for key in _METADATA_FIELDS if record.get(key) is not None}
    if record.get('type') not in ('user', 'assistant'):
        provider_metadata['entryType'] = record.get('type')

    return build_record(
        PROVIDER,
        uuid=string_field(record, 'uuid') or string_field(record, 'leafUuid'),
        timestamp=record.get('timestamp'),
        type=_record_type(record, content),
        sessionId=default_session_id(record),
        message={
            'role': string_field(message, 'role'),
            'content': content,
            'model': string_field(message, 'model'),
            'usage': dict_field(message, 'usage'),
        },
        parentUuid=string_field(record, 'parentUuid'),
        providerMetadata=provider_metadata or None,
        cwd=string_field(record, 'cwd'),
        gitBranch=string_field(record, 'gitBranch'),
        version=string_field(record, 'version'),
        requestId=string_field(record, 'requestId'),
        isSidechain=bool_field(record, 'isSidechain'),
        isCompactSummary=bool_field(record, 'isCompactSummary'),
        userType=string_field(record, 'userType'),
    )


class ClaudeCodeParser:
    name = PROVIDER
    provider_name = PROVIDER
    aliases: tuple[str, ...] = ('claude',)

    def detect(self, record: Mapping[str, Any]) -> bool:
        return is_claude_code_record(record)

    def can_parse(self, content: str) -> bool:
        return probe_content(content, self.detect)

    def extract_session_id(self, record: Mapping[str, Any]) -> str | None:
        return default_session_id(record)

    def transform(self, record: Mapping[str, Any]) -> list[ParsedMessage]:
        if record.get('isMeta') is True:
            return []
        return messages_from_records([to_canonical(record)])

    def parse_session(self, content: str) -> ParsedSession:
        return assemble_session(content, self)
