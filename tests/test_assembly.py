"""Tests for session assembly: ordering, bounds, session id and record skipping."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import pytest

from session_normalizer.exceptions import EmptyContentError, InvalidJsonLineError
from session_normalizer.normalization.assembly import assemble_session, fallback_session_id, sort_messages
from session_normalizer.providers import CanonicalParser
from session_normalizer.schemas.messages import ParsedMessage

RawFactory = Callable[..., dict[str, Any]]
Dump = Callable[[Iterable[Mapping[str, Any]]], str]


def test_messages_are_sorted_and_bounded(make_raw: RawFactory, to_jsonl: Dump) -> None:
    content = to_jsonl(
        [
            make_raw(uuid='late', content='third', timestamp='2025-01-15T10:00:05Z'),
            make_raw(uuid='early', content='first', timestamp='2025-01-15T10:00:00Z'),
            make_raw(uuid='middle', record_type='assistant', content='second', timestamp='2025-01-15T10:00:02.250Z'),
        ]
    )

    session = assemble_session(content, CanonicalParser())

    assert [message.id for message in session.messages] == ['early', 'middle', 'late']
    assert session.start_time == session.messages[0].timestamp
    assert session.end_time == session.messages[-1].timestamp
    assert session.duration == 5000
    assert session.session_id == 'session-a'
    assert session.provider == 'canonical'
    assert session.metadata.message_count == 3
    assert session.metadata.line_count == 3


def test_equal_timestamps_keep_emission_order(make_raw: RawFactory, to_jsonl: Dump) -> None:
    content = to_jsonl(
        [
            make_raw(
                uuid='a1',
                record_type='assistant',
                content=[
                    {'type': 'text', 'text': 'running'},
                    {'type': 'tool_use', 'id': 't1', 'name': 'Bash'},
                    {'type': 'tool_use', 'id': 't2', 'name': 'Bash'},
                ],
            ),
            make_raw(uuid='b1', record_type='assistant', content='same instant'),
        ]
    )

    session = assemble_session(content, CanonicalParser())

    assert [message.id for message in session.messages] == ['a1-text', 'a1', 'a1-tool-t2', 'b1']


def test_sort_is_idempotent(make_raw: RawFactory, to_jsonl: Dump) -> None:
    content = to_jsonl(
        [
            make_raw(uuid='b', timestamp='2025-01-15T10:00:01Z'),
            make_raw(uuid='a', timestamp='2025-01-15T10:00:00Z'),
        ]
    )
    messages = assemble_session(content, CanonicalParser()).messages

    assert sort_messages(messages) == messages


def test_session_id_falls_back(make_raw: RawFactory, to_jsonl: Dump) -> None:
    raw = make_raw()
    del raw['sessionId']

    session = assemble_session(to_jsonl([raw]), CanonicalParser())

    assert session.session_id.startswith('session_')
    assert session.session_id.removeprefix('session_').isdigit()


def test_session_id_comes_from_first_record_exposing_one(make_raw: RawFactory, to_jsonl: Dump) -> None:
    first = make_raw(uuid='a')
    del first['sessionId']
    second = make_raw(uuid='b', sessionId='from-second')
    third = make_raw(uuid='c', sessionId='from-third')

    session = assemble_session(to_jsonl([first, second, third]), CanonicalParser())

    assert session.session_id == 'from-second'


def test_session_id_taken_from_record_without_timestamp(make_raw: RawFactory, to_jsonl: Dump) -> None:
    header = {'type': 'session', 'sessionId': 'header-id'}

    session = assemble_session(to_jsonl([header, make_raw(sessionId='later-id')]), CanonicalParser())

    assert session.session_id == 'header-id'
    assert len(session.messages) == 1


def test_empty_session(make_raw: RawFactory, to_jsonl: Dump) -> None:
    content = to_jsonl([make_raw(timestamp='not a time'), {'unrelated': True}])

    session = assemble_session(content, CanonicalParser())

    assert session.messages == []
    assert session.duration == 0
    assert session.start_time == session.end_time
    assert session.metadata.message_count == 0
    assert session.metadata.line_count == 2


def test_records_without_timestamp_are_skipped(make_raw: RawFactory, to_jsonl: Dump) -> None:
    missing = make_raw(uuid='missing')
    del missing['timestamp']

    session = assemble_session(to_jsonl([missing, make_raw(uuid='kept')]), CanonicalParser())

    assert [message.id for message in session.messages] == ['kept']


def test_malformed_line_past_prefix_is_skipped(
    make_raw: RawFactory, to_jsonl: Dump, caplog: pytest.LogCaptureFixture
) -> None:
    content = to_jsonl([make_raw(uuid=f'u{index}') for index in range(3)]) + '{truncated\n' + to_jsonl(
        [make_raw(uuid='u3')]
    )

    with caplog.at_level(logging.WARNING, logger='session_normalizer'):
        session = assemble_session(content, CanonicalParser())

    assert [message.id for message in session.messages] == ['u0', 'u1', 'u2', 'u3']
    assert session.metadata.line_count == 5
    assert 'Skipping malformed line 4' in caplog.text


def test_structural_errors_are_raised(make_raw: RawFactory, to_jsonl: Dump) -> None:
    with pytest.raises(EmptyContentError):
        assemble_session('  \n', CanonicalParser())

    with pytest.raises(InvalidJsonLineError) as exc_info:
        assemble_session(to_jsonl([make_raw()]) + '{truncated\n', CanonicalParser())
    assert exc_info.value.line_number == 2


def test_transform_failure_skips_only_that_record(
    make_raw: RawFactory, to_jsonl: Dump, caplog: pytest.LogCaptureFixture
) -> None:
    class FlakyParser(CanonicalParser):
        def transform(self, record: Mapping[str, Any]) -> list[ParsedMessage]:
            if record.get('uuid') == 'bad':
                raise ValueError('unexpected payload shape')
            return super().transform(record)

    content = to_jsonl([make_raw(uuid='bad'), make_raw(uuid='good')])

    with caplog.at_level(logging.WARNING, logger='session_normalizer'):
        session = assemble_session(content, FlakyParser())

    assert [message.id for message in session.messages] == ['good']
    assert 'Skipping line 1' in caplog.text


def test_adapter_bug_propagates(make_raw: RawFactory, to_jsonl: Dump) -> None:
    class BrokenParser(CanonicalParser):
        def transform(self, record: Mapping[str, Any]) -> list[ParsedMessage]:
            raise KeyError('missing lookup')

    with pytest.raises(KeyError):
        assemble_session(to_jsonl([make_raw()]), BrokenParser())


def test_fallback_session_id_format() -> None:
    assert fallback_session_id().startswith('session_')


def test_json_dict_uses_camel_case(make_raw: RawFactory, to_jsonl: Dump) -> None:
    content = to_jsonl(
        [
            make_raw(
                uuid='a1',
                record_type='assistant',
                content=[{'type': 'text', 'text': 'run'}, {'type': 'tool_use', 'id': 't1', 'name': 'Bash'}],
            ),
            make_raw(uuid='r1', content=[{'type': 'tool_result', 'tool_use_id': 't1', 'content': 'ok'}]),
        ]
    )

    data = assemble_session(content, CanonicalParser()).to_json_dict()

    assert data['sessionId'] == 'session-a'
    assert data['startTime'] == '2025-01-15T10:00:00Z'
    assert data['metadata'] == {'messageCount': 3, 'lineCount': 2}
    tool_message = data['messages'][1]
    assert tool_message['parentId'] == 'a1-text'
    assert tool_message['content']['toolUse']['id'] == 't1'
    assert data['messages'][2]['linkedTo'] == 't1'
    assert 'linkedTo' not in data['messages'][0]
