"""Shared pytest fixtures: builders for canonical records and JSONL content."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import pytest

from session_normalizer.schemas.records import CanonicalRecord

DEFAULT_TIMESTAMP = '2025-01-15T10:00:00.000Z'


def canonical_dict(
    uuid: str = 'rec-1',
    record_type: str = 'user',
    content: object = 'hello',
    timestamp: object = DEFAULT_TIMESTAMP,
    **extra: Any,
) -> dict[str, Any]:
    message = {'role': record_type if record_type in ('user', 'assistant') else 'system', 'content': content}
    message.update(extra.pop('message_fields', {}))
    return {
        'uuid': uuid,
        'timestamp': timestamp,
        'type': record_type,
        'sessionId': 'session-a',
        'message': message,
        **extra,
    }


@pytest.fixture
def make_raw() -> Callable[..., dict[str, Any]]:
    """Builder for a raw canonical record dict."""
    return canonical_dict


@pytest.fixture
def make_record() -> Callable[..., CanonicalRecord]:
    """Builder for a validated CanonicalRecord."""

    def build(*args: Any, **kwargs: Any) -> CanonicalRecord:
        return CanonicalRecord.model_validate(canonical_dict(*args, **kwargs))

    return build


@pytest.fixture
def to_jsonl() -> Callable[[Iterable[Mapping[str, Any]]], str]:
    """Serialize records as JSONL content."""

    def dump(records: Iterable[Mapping[str, Any]]) -> str:
        return '\n'.join(json.dumps(record) for record in records) + '\n'

    return dump
