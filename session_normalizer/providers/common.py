"""
Helpers shared by the provider adapters.

Adapters build CanonicalRecord instances from their own record shapes. These
functions cover the parts every adapter needs: the default session id lookup,
record construction that never raises on provider garbage, and turning a
record into messages under the split-per-tool-block policy.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

import pydantic

from session_normalizer.normalization.decomposer import decompose_records
from session_normalizer.normalization.timestamps import epoch_millis, parse_timestamp
from session_normalizer.schemas.blocks import first_string
from session_normalizer.schemas.messages import ParsedMessage
from session_normalizer.schemas.records import CanonicalRecord

__all__ = [
    'SESSION_ID_KEYS',
    'bool_field',
    'build_record',
    'default_session_id',
    'dict_field',
    'messages_from_records',
    'string_field',
    'synthesize_id',
    'timestamp_millis',
]

logger = logging.getLogger(__name__)

SESSION_ID_KEYS = ('sessionId', 'sessionID')


def default_session_id(record: Mapping[str, Any]) -> str | None:
    return first_string(record, SESSION_ID_KEYS)


def string_field(record: Mapping[str, Any], key: str) -> str | None:
    """A string field, or None when it is missing, empty or not a string."""
    value = record.get(key)
    return value if isinstance(value, str) and value else None


def build_record(provider: str, **fields: Any) -> CanonicalRecord | None:
    """
    Build a canonical record from adapter-extracted fields.

    Fields that are None are left unset. Returns None (and logs) when the
    fields do not form a valid record - one bad provider record must not
    abort the session.
    """
    data = {key: value for key, value in fields.items() if value is not None}
    data.setdefault('provider', provider)
    try:
        return CanonicalRecord.model_validate(data)
    except pydantic.ValidationError as e:
        logger.debug('Dropping %s record %s: %d validation errors', provider, data.get('uuid'), e.error_count())
        return None


def messages_from_records(records: Iterable[CanonicalRecord | None]) -> list[ParsedMessage]:
    """Decompose adapter-built records, one canonical record per tool block."""
    return decompose_records((record for record in records if record is not None), split=True)


def bool_field(record: Mapping[str, Any], key: str) -> bool | None:
    value = record.get(key)
    return value if isinstance(value, bool) else None


def dict_field(record: Mapping[str, Any], key: str) -> dict[str, Any] | None:
    value = record.get(key)
    return value if isinstance(value, dict) else None


def timestamp_millis(record: Mapping[str, Any]) -> int | None:
    """Epoch milliseconds of the record timestamp, None when it does not parse."""
    timestamp = parse_timestamp(record.get('timestamp'))
    return epoch_millis(timestamp) if timestamp is not None else None


def synthesize_id(record: Mapping[str, Any], prefix: str = 'msg') -> str:
    """
    Deterministic id for records that carry none: {prefix}_{epochMillis}_{hash8}.

    The hash covers the whole record, so re-parsing the same log yields the
    same ids and two records sharing a millisecond still differ.
    """
    digest = hashlib.sha256(json.dumps(record, sort_keys=True, default=str).encode('utf-8')).hexdigest()[:8]
    return f'{prefix}_{timestamp_millis(record) or 0}_{digest}'
