"""
GitHub Copilot CLI adapter.

Copilot writes a flat timeline: user/copilot/info entries with a `text`, and
tool events. A tool_call_completed entry carries both the call and its result,
so it becomes two records: the tool_use (id callId) and the tool_result
(id result-{callId}, linked to callId). When the same call also has a
tool_call_requested entry, both tool_use messages share the call id.

Copilot logs carry no session id; sessions fall back to session_{epochMillis}.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from session_normalizer.normalization.assembly import assemble_session
from session_normalizer.normalization.detection import is_copilot_record, probe_content
from session_normalizer.providers.common import (
    build_record,
    default_session_id,
    messages_from_records,
    string_field,
    timestamp_millis,
)
from session_normalizer.schemas.messages import ParsedMessage, ParsedSession
from session_normalizer.schemas.records import CanonicalRecord

PROVIDER = 'github-copilot'

_TEXT_RECORD_TYPES = {'user': 'user', 'copilot': 'assistant', 'info': 'assistant'}


def _provider_metadata(record: Mapping[str, Any], **extra: Any) -> dict[str, Any]:
    values = {
        'entryType': record.get('type'),
        'toolTitle': record.get('toolTitle'),
        'intentionSummary': record.get('intentionSummary'),
        **extra,
    }
    return {key: value for key, value in values.items() if value is not None}


def _result_content(result: object) -> object:
    """The tool output: result.log when present, else the result as given."""
    if isinstance(result, dict) and 'log' in result:
        return result['log']
    return result


def to_canonical(record: Mapping[str, Any]) -> list[CanonicalRecord | None]:
    record_type = record.get('type')
    millis = timestamp_millis(record)

    if record_type in ('tool_call_requested', 'tool_call_completed'):
        call_id = string_field(record, 'callId') or f'tool-{millis}'
        tool_use = build_record(
            PROVIDER,
            uuid=call_id,
            timestamp=record.get('timestamp'),
            type='assistant',
            message={
                'role': 'assistant',
                'content': [
                    {
                        'type': 'tool_use',
                        'id': call_id,
                        'name': string_field(record, 'name') or 'unknown',
                        'input': record.get('arguments'),
                    }
                ],
            },
            providerMetadata=_provider_metadata(record),
        )
        if record_type == 'tool_call_requested':
            return [tool_use]

        result = record.get('result')
        tool_result = build_record(
            PROVIDER,
            uuid=f'result-{call_id}',
            timestamp=record.get('timestamp'),
            type='user',
            message={
                'role': 'user',
                'content': [{'type': 'tool_result', 'tool_use_id': call_id, 'content': _result_content(result)}],
            },
            providerMetadata=_provider_metadata(
                record,
                toolName=string_field(record, 'name'),
                resultType=result.get('type') if isinstance(result, dict) else None,
            ),
        )
        return [tool_use, tool_result]

    text = record.get('text')
    canonical_type = _TEXT_RECORD_TYPES.get(str(record_type), 'meta')
    return [
        build_record(
            PROVIDER,
            uuid=string_field(record, 'id') or f'msg-{millis}',
            timestamp=record.get('timestamp'),
            type=canonical_type,
            message={'role': canonical_type, 'content': text if isinstance(text, str) else ''},
            providerMetadata=_provider_metadata(record),
        )
    ]


class CopilotParser:
    name = PROVIDER
    provider_name = PROVIDER
    aliases: tuple[str, ...] = ('copilot',)

    def detect(self, record: Mapping[str, Any]) -> bool:
        return is_copilot_record(record)

    def can_parse(self, content: str) -> bool:
        return probe_content(content, self.detect)

    def extract_session_id(self, record: Mapping[str, Any]) -> str | None:
        return default_session_id(record)

    def transform(self, record: Mapping[str, Any]) -> list[ParsedMessage]:
        return messages_from_records(to_canonical(record))

    def parse_session(self, content: str) -> ParsedSession:
        return assemble_session(content, self)
