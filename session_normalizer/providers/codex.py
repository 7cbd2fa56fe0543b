"""
Codex CLI adapter.

Codex rollouts wrap every event in an envelope: {timestamp, type, payload}.
The envelope type says where the event came from (session_meta, turn_context,
response_item, event_msg); payload.type says what it is.

response_item payloads are the model-facing transcript and carry the full
content. Several event_msg payloads repeat them in a thinner form:
agent_message and agent_reasoning are always followed by the fuller
response_item, so they are skipped. user_message, turn_aborted and
token_count have no response_item counterpart and are kept.

Older exports without envelopes (top-level messageID/sessionID) are read as a
bare payload.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from session_normalizer.normalization.assembly import assemble_session
from session_normalizer.normalization.classification import INTERRUPTION_MARKERS
from session_normalizer.normalization.detection import is_codex_record, probe_content
from session_normalizer.providers.common import (
    build_record,
    default_session_id,
    dict_field,
    messages_from_records,
    string_field,
    synthesize_id,
)
from session_normalizer.schemas.blocks import parse_tool_arguments
from session_normalizer.schemas.messages import ParsedMessage, ParsedSession
from session_normalizer.schemas.records import CanonicalRecord

logger = logging.getLogger(__name__)

PROVIDER = 'codex'

# event_msg payloads that duplicate a following response_item
DUPLICATE_EVENT_TYPES = frozenset({'agent_message', 'agent_reasoning'})
TOOL_CALL_TYPES = frozenset({'function_call', 'custom_tool_call', 'local_shell_call'})
TOOL_OUTPUT_TYPES = frozenset({'function_call_output', 'custom_tool_call_output'})
ENVELOPE_META_TYPES = frozenset({'session_meta', 'turn_context'})

_ROLE_TO_RECORD_TYPE = {'user': 'user', 'assistant': 'assistant'}


def _tool_input(payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Arguments of a tool call.

    function_call arguments are a JSON string (decoded, {} when undecodable).
    custom_tool_call input is free text (a patch, a script) and is kept under
    an "input" key when it is not a JSON object.
    """
    if 'arguments' in payload:
        return parse_tool_arguments(payload['arguments'])
    raw_input = payload.get('input', payload.get('action'))
    decoded = parse_tool_arguments(raw_input)
    if not decoded and isinstance(raw_input, str) and raw_input:
        return {'input': raw_input}
    return decoded


def _tool_output(payload: Mapping[str, Any]) -> Any:
    output = payload.get('output')
    if isinstance(output, dict) and 'output' in output:
        return output['output']
    return output


class CodexParser:
    name = PROVIDER
    provider_name = PROVIDER
    aliases: tuple[str, ...] = ()

    def detect(self, record: Mapping[str, Any]) -> bool:
        return is_codex_record(record)

    def can_parse(self, content: str) -> bool:
        return probe_content(content, self.detect)

    def extract_session_id(self, record: Mapping[str, Any]) -> str | None:
        payload = dict_field(record, 'payload')
        if record.get('type') == 'session_meta' and payload is not None:
            session_id = string_field(payload, 'id')
            if session_id is not None:
                return session_id
        return default_session_id(record)

    def transform(self, record: Mapping[str, Any]) -> list[ParsedMessage]:
        return messages_from_records([self.to_canonical(record)])

    def parse_session(self, content: str) -> ParsedSession:
        return assemble_session(content, self)

    def to_canonical(self, record: Mapping[str, Any]) -> CanonicalRecord | None:
        """Map one envelope to a canonical record, or None for skipped events."""
        payload = dict_field(record, 'payload') or record
        envelope_type = record.get('type')
        payload_type = payload.get('type')

        if envelope_type == 'event_msg' and payload_type in DUPLICATE_EVENT_TYPES:
            logger.debug('Skipping %s event (duplicated by a response_item)', payload_type)
            return None

        if envelope_type in ENVELOPE_META_TYPES:
            return self._meta_record(record, payload, label=str(envelope_type))

        match payload_type:
            case 'message':
                record_type = _ROLE_TO_RECORD_TYPE.get(str(payload.get('role')), 'meta')
                content = payload.get('content')
                return self._record(
                    record,
                    payload,
                    record_type,
                    content if isinstance(content, str | list) else '',
                    role=string_field(payload, 'role'),
                )
            case 'reasoning':
                summary = payload.get('summary')
                thoughts = [
                    {'type': 'thinking', 'thinking': part.get('text', '')}
                    for part in (summary if isinstance(summary, list) else [])
                    if isinstance(part, dict)
                ]
                return self._record(record, payload, 'assistant', thoughts, role='assistant')
            case _ if payload_type in TOOL_CALL_TYPES:
                block = {
                    'type': 'tool_use',
                    'id': string_field(payload, 'call_id') or string_field(payload, 'id'),
                    'name': string_field(payload, 'name') or str(payload_type),
                    'input': _tool_input(payload),
                }
                return self._record(record, payload, 'assistant', [block], role='assistant')
            case _ if payload_type in TOOL_OUTPUT_TYPES:
                block = {
                    'type': 'tool_result',
                    'tool_use_id': string_field(payload, 'call_id'),
                    'content': _tool_output(payload),
                }
                return self._record(record, payload, 'user', [block], role='user')
            case 'user_message':
                message = payload.get('message')
                return self._record(record, payload, 'user', message if isinstance(message, str) else '', role='user')
            case 'turn_aborted':
                return self._record(record, payload, 'user', INTERRUPTION_MARKERS[0], role='user')
            case 'token_count':
                info = dict_field(payload, 'info') or {}
                usage = dict_field(info, 'last_token_usage') or dict_field(info, 'total_token_usage')
                return self._meta_record(record, payload, label='token_count', usage=usage)
            case _:
                return self._meta_record(record, payload, label=str(payload_type or envelope_type or 'event'))

    def _record(
        self,
        record: Mapping[str, Any],
        payload: Mapping[str, Any],
        record_type: str,
        content: str | list[Any],
        *,
        role: str | None = None,
        usage: dict[str, Any] | None = None,
        provider_metadata: dict[str, Any] | None = None,
        cwd: str | None = None,
        version: str | None = None,
    ) -> CanonicalRecord | None:
        return build_record(
            PROVIDER,
            uuid=string_field(record, 'id') or synthesize_id(record),
            timestamp=record.get('timestamp'),
            type=record_type,
            sessionId=default_session_id(record),
            message={
                'role': role,
                'content': content,
                'model': string_field(payload, 'model'),
                'usage': usage,
            },
            providerMetadata={
                'envelopeType': record.get('type'),
                'payloadType': payload.get('type'),
                **(provider_metadata or {}),
            },
            cwd=cwd,
            version=version,
        )

    def _meta_record(
        self,
        record: Mapping[str, Any],
        payload: Mapping[str, Any],
        *,
        label: str,
        usage: dict[str, Any] | None = None,
    ) -> CanonicalRecord | None:
        """Meta record labelled with the event kind; the payload rides along in providerMetadata."""
        details = {key: value for key, value in payload.items() if key not in ('type', 'instructions')}
        return self._record(
            record,
            payload,
            'meta',
            label,
            usage=usage,
            provider_metadata={'payload': details},
            cwd=string_field(payload, 'cwd'),
            version=string_field(payload, 'cli_version'),
        )
