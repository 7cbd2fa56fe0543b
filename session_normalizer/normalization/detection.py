"""
Format detection - structural fingerprinting of a log's leading lines.

Each provider is recognized by the shape of its records, not by a declared
type tag alone. The fingerprints below are pure predicates over one decoded
record; detect_format() asks each parser, in registry order, whether any of
the peeked records matches its fingerprint.

Ordering matters because fingerprints overlap: a canonical record also looks
like a first-party assistant record, and a terminal-copilot "user" line looks
like many things. The most specific fingerprints are consulted first.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from session_normalizer.config import settings
from session_normalizer.normalization.reader import iter_lines, load_record
from session_normalizer.schemas.records import CANONICAL_RECORD_TYPES

if TYPE_CHECKING:
    from session_normalizer.providers.protocol import SessionParser

__all__ = [
    'COPILOT_RECORD_TYPES',
    'detect_format',
    'is_canonical_record',
    'is_claude_code_record',
    'is_codex_record',
    'is_copilot_record',
    'is_gemini_record',
    'is_opencode_record',
    'peek_records',
    'probe_content',
]

logger = logging.getLogger(__name__)

COPILOT_RECORD_TYPES = frozenset({'copilot', 'info', 'tool_call_requested', 'tool_call_completed'})
GEMINI_MARKER_FIELDS = ('gemini_model', 'gemini_raw', 'gemini_thoughts')
CLAUDE_CODE_RECORD_TYPES = frozenset({'user', 'assistant'})
OPENCODE_RECORD_TYPES = frozenset({'user', 'assistant', 'tool_use', 'tool_result'})


# ==============================================================================
# Fingerprints
# ==============================================================================


def is_canonical_record(record: Mapping[str, Any]) -> bool:
    """uuid, sessionId, message.role present and type in {user, assistant, meta}."""
    message = record.get('message')
    return bool(
        record.get('uuid')
        and record.get('sessionId')
        and isinstance(message, dict)
        and message.get('role')
        and record.get('type') in CANONICAL_RECORD_TYPES
    )


def is_gemini_record(record: Mapping[str, Any]) -> bool:
    return any(field in record for field in GEMINI_MARKER_FIELDS) or record.get('type') == 'gemini'


def is_codex_record(record: Mapping[str, Any]) -> bool:
    return isinstance(record.get('payload'), dict) or ('messageID' in record and 'sessionID' in record)


def is_copilot_record(record: Mapping[str, Any]) -> bool:
    record_type = record.get('type')
    if record_type in COPILOT_RECORD_TYPES:
        return True
    return record_type == 'user' and isinstance(record.get('text'), str) and 'message' not in record


def is_claude_code_record(record: Mapping[str, Any]) -> bool:
    return bool(
        record.get('uuid')
        and record.get('timestamp')
        and record.get('message')
        and record.get('type') in CLAUDE_CODE_RECORD_TYPES
    )


def is_opencode_record(record: Mapping[str, Any]) -> bool:
    return bool(
        record.get('sessionId')
        and record.get('timestamp')
        and record.get('message')
        and record.get('type') in OPENCODE_RECORD_TYPES
        and not record.get('uuid')
    )


# ==============================================================================
# Probing
# ==============================================================================


def peek_records(content: str, line_limit: int | None = None) -> list[dict[str, Any]]:
    """Decode up to line_limit leading non-empty lines, skipping undecodable ones."""
    limit = settings.DETECTION_LINE_LIMIT if line_limit is None else line_limit
    records = []
    for line in iter_lines(content)[:limit]:
        record = load_record(line)
        if record is not None:
            records.append(record)
    return records


def probe_content(
    content: str,
    fingerprint: Callable[[Mapping[str, Any]], bool],
    line_limit: int | None = None,
) -> bool:
    """True when any peeked record matches the fingerprint."""
    if not content or not content.strip():
        return False
    return any(fingerprint(record) for record in peek_records(content, line_limit))


def detect_format(
    content: str,
    parsers: Iterable[SessionParser],
    line_limit: int | None = None,
) -> SessionParser | None:
    """
    Select the first parser (in the given order) whose fingerprint accepts a peeked line.

    Pure function of the content and the parser sequence. Returns None when
    nothing matches.
    """
    records = peek_records(content, line_limit) if content and content.strip() else []
    if not records:
        return None

    for parser in parsers:
        if any(parser.detect(record) for record in records):
            logger.debug('Detected format %s', parser.name)
            return parser

    logger.debug('No format matched %d peeked records', len(records))
    return None
