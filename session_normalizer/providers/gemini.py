"""
Gemini CLI adapter.

Gemini records look like canonical records with extra top-level fields:
gemini_thoughts (the model's reasoning summaries), gemini_tokens (usage),
gemini_model. Assistant turns are typed "gemini".

Thoughts become thinking blocks placed ahead of the turn's content. A turn
with several thoughts and no text therefore fans out into one message per
thought; a turn with text keeps thoughts and text together.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from session_normalizer.normalization.assembly import assemble_session
from session_normalizer.normalization.detection import is_gemini_record, probe_content
from session_normalizer.providers.common import (
    build_record,
    default_session_id,
    dict_field,
    messages_from_records,
    string_field,
    synthesize_id,
)
from session_normalizer.schemas.messages import ParsedMessage, ParsedSession
from session_normalizer.schemas.records import CanonicalRecord

PROVIDER = 'gemini-code'

_RECORD_TYPES = {
    'user': 'user',
    'gemini': 'assistant',
    'assistant': 'assistant',
    'tool_use': 'assistant',
    'tool_result': 'user',
}

# gemini_tokens key -> usage key
_TOKEN_FIELDS = {
    'input': 'input_tokens',
    'output': 'output_tokens',
    'cached': 'cache_read_input_tokens',
    'thoughts': 'thoughts_tokens',
    'tool': 'tool_tokens',
    'total': 'total_tokens',
}


def thought_blocks(thoughts: object) -> list[dict[str, Any]]:
    """gemini_thoughts as thinking blocks: "subject" on the first line, description below."""
    if isinstance(thoughts, str):
        return [{'type': 'thinking', 'thinking': thoughts}] if thoughts.strip() else []
    if not isinstance(thoughts, list):
        return []

    blocks = []
    for thought in thoughts:
        if isinstance(thought, str):
            body = thought
        elif isinstance(thought, dict):
            subject = thought.get('subject') or ''
            description = thought.get('description') or ''
            body = '\n'.join(part for part in (subject, description) if isinstance(part, str) and part)
        else:
            continue
        blocks.append({'type': 'thinking', 'thinking': body})
    return blocks


def token_usage(tokens: object) -> dict[str, Any] | None:
    if not isinstance(tokens, dict):
        return None
    usage = {usage_key: tokens[key] for key, usage_key in _TOKEN_FIELDS.items() if tokens.get(key) is not None}
    return usage or None


def to_canonical(record: Mapping[str, Any]) -> CanonicalRecord | None:
    message = dict_field(record, 'message') or {}
    content = message.get('content', record.get('content', ''))
    thoughts = thought_blocks(record.get('gemini_thoughts'))

    if thoughts:
        if isinstance(content, str):
            content = [{'type': 'text', 'text': content}] if content.strip() else []
        content = [*thoughts, *(content if isinstance(content, list) else [])]
    elif not isinstance(content, str | list):
        content = ''

    record_type = _RECORD_TYPES.get(str(record.get('type')), 'meta')
    return build_record(
        PROVIDER,
        uuid=string_field(record, 'uuid') or string_field(record, 'id') or synthesize_id(record),
        timestamp=record.get('timestamp'),
        type=record_type,
        sessionId=default_session_id(record),
        message={
            'role': string_field(message, 'role') or record_type,
            'content': content,
            'model': string_field(record, 'gemini_model') or string_field(message, 'model'),
            'usage': token_usage(record.get('gemini_tokens')),
        },
        parentUuid=string_field(record, 'parentUuid'),
        cwd=string_field(record, 'cwd'),
    )


class GeminiParser:
    name = PROVIDER
    provider_name = PROVIDER
    aliases: tuple[str, ...] = ('gemini',)

    def detect(self, record: Mapping[str, Any]) -> bool:
        return is_gemini_record(record)

    def can_parse(self, content: str) -> bool:
        return probe_content(content, self.detect)

    def extract_session_id(self, record: Mapping[str, Any]) -> str | None:
        return default_session_id(record)

    def transform(self, record: Mapping[str, Any]) -> list[ParsedMessage]:
        return messages_from_records([to_canonical(record)])

    def parse_session(self, content: str) -> ParsedSession:
        return assemble_session(content, self)
