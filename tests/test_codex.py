"""Tests for the Codex rollout adapter."""

from __future__ import annotations

import json
from typing import Any

from session_normalizer.normalization.classification import INTERRUPTION_MARKERS
from session_normalizer.providers import CodexParser

parser = CodexParser()

TIMESTAMP = '2025-03-01T12:00:00.000Z'


def envelope(envelope_type: str, payload: dict[str, Any], timestamp: str = TIMESTAMP) -> dict[str, Any]:
    return {'timestamp': timestamp, 'type': envelope_type, 'payload': payload}


def test_session_meta() -> None:
    record = envelope('session_meta', {'id': 'codex-1', 'cwd': '/repo', 'cli_version': '0.40.0', 'instructions': 'x'})

    (message,) = parser.transform(record)

    assert parser.extract_session_id(record) == 'codex-1'
    assert message.type == 'meta'
    assert message.content == 'session_meta'
    assert message.metadata['cwd'] == '/repo'
    assert message.metadata['version'] == '0.40.0'
    assert message.metadata['providerMetadata']['payload'] == {'id': 'codex-1', 'cwd': '/repo', 'cli_version': '0.40.0'}


def test_response_message() -> None:
    record = envelope(
        'response_item',
        {'type': 'message', 'role': 'assistant', 'content': [{'type': 'output_text', 'text': 'Done.'}]},
    )

    (message,) = parser.transform(record)

    assert message.type == 'assistant_response'
    assert message.text == 'Done.'
    assert message.metadata['providerMetadata'] == {'envelopeType': 'response_item', 'payloadType': 'message'}


def test_user_input_text_parts() -> None:
    record = envelope(
        'response_item', {'type': 'message', 'role': 'user', 'content': [{'type': 'input_text', 'text': 'hi'}]}
    )

    (message,) = parser.transform(record)

    assert message.type == 'user_input'
    assert message.text == 'hi'


def test_function_call_and_output_link() -> None:
    call = envelope(
        'response_item',
        {'type': 'function_call', 'name': 'shell', 'arguments': json.dumps({'command': ['ls']}), 'call_id': 'call_1'},
    )
    output = envelope('response_item', {'type': 'function_call_output', 'call_id': 'call_1', 'output': 'a.txt'})

    (tool_use,) = parser.transform(call)
    (tool_result,) = parser.transform(output)

    assert tool_use.type == 'tool_use'
    assert tool_use.tool_uses[0].id == 'call_1'
    assert tool_use.tool_uses[0].input == {'command': ['ls']}
    assert tool_result.type == 'tool_result'
    assert tool_result.linked_to == 'call_1'


def test_undecodable_arguments_default_to_empty() -> None:
    call = envelope('response_item', {'type': 'function_call', 'name': 'shell', 'arguments': '{oops', 'call_id': 'c'})

    (tool_use,) = parser.transform(call)

    assert tool_use.tool_uses[0].input == {}


def test_custom_tool_call_keeps_free_text_input() -> None:
    call = envelope(
        'response_item',
        {'type': 'custom_tool_call', 'name': 'apply_patch', 'input': '*** Begin Patch', 'call_id': 'c2'},
    )

    (tool_use,) = parser.transform(call)

    assert tool_use.tool_uses[0].name == 'apply_patch'
    assert tool_use.tool_uses[0].input == {'input': '*** Begin Patch'}


def test_reasoning_becomes_thinking() -> None:
    record = envelope(
        'response_item',
        {'type': 'reasoning', 'summary': [{'type': 'summary_text', 'text': '**Planning**'}], 'encrypted_content': 'x'},
    )

    (message,) = parser.transform(record)

    assert message.type == 'assistant_response'
    assert message.text == '**Planning**'
    assert message.metadata['hasThinking'] is True


def test_duplicate_agent_events_are_skipped() -> None:
    assert parser.transform(envelope('event_msg', {'type': 'agent_message', 'message': 'Done.'})) == []
    assert parser.transform(envelope('event_msg', {'type': 'agent_reasoning', 'text': 'x'})) == []


def test_user_message_event() -> None:
    (message,) = parser.transform(envelope('event_msg', {'type': 'user_message', 'message': '/status'}))

    assert message.type == 'command'


def test_turn_aborted_is_interruption() -> None:
    (message,) = parser.transform(envelope('event_msg', {'type': 'turn_aborted', 'reason': 'interrupted'}))

    assert message.type == 'interruption'
    assert message.content == INTERRUPTION_MARKERS[0]


def test_token_count_carries_usage() -> None:
    record = envelope(
        'event_msg',
        {
            'type': 'token_count',
            'info': {'total_token_usage': {'input_tokens': 50}, 'last_token_usage': {'input_tokens': 5}},
        },
    )

    (message,) = parser.transform(record)

    assert message.type == 'meta'
    assert message.metadata['usage'] == {'input_tokens': 5}


def test_ids_are_deterministic() -> None:
    record = envelope('event_msg', {'type': 'user_message', 'message': 'hello'})
    other = envelope('event_msg', {'type': 'user_message', 'message': 'hello again'})

    (first,) = parser.transform(record)
    (again,) = parser.transform(record)
    (different,) = parser.transform(other)

    assert first.id == again.id
    assert first.id.startswith('msg_1740830400000_')
    assert different.id != first.id


def test_parse_session_uses_session_meta_id() -> None:
    content = '\n'.join(
        json.dumps(record)
        for record in [
            envelope('session_meta', {'id': 'codex-1'}),
            envelope('event_msg', {'type': 'user_message', 'message': 'hi'}, '2025-03-01T12:00:01Z'),
        ]
    )

    session = parser.parse_session(content)

    assert session.session_id == 'codex-1'
    assert session.provider == 'codex'
    assert [message.type for message in session.messages] == ['meta', 'user_input']
