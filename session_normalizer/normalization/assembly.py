"""
Session assembler - folds a JSONL blob into a ParsedSession.

One pass over the lines: decode, pick up the session id, hand each record to
the parser's transform(), collect messages. Afterwards the messages are
stably sorted by timestamp and the session bounds are taken from them.

Failure tiers:
- Structural (empty content, non-JSON in the strict prefix): raised.
- Record-local (undecodable line past the prefix, missing/invalid timestamp,
  a validation, value or type error from the adapter): logged, record skipped.
- Anything else an adapter raises is a bug and propagates.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

import pydantic

from session_normalizer.normalization.reader import load_record, validate_content
from session_normalizer.normalization.timestamps import epoch_millis, now_utc, parse_timestamp
from session_normalizer.schemas.messages import ParsedMessage, ParsedSession, SessionMetadata

if TYPE_CHECKING:
    from session_normalizer.providers.protocol import SessionParser

__all__ = [
    'assemble_session',
    'fallback_session_id',
    'sort_messages',
]

logger = logging.getLogger(__name__)


def fallback_session_id() -> str:
    return f'session_{epoch_millis(now_utc())}'


def sort_messages(messages: list[ParsedMessage]) -> list[ParsedMessage]:
    """Ascending by timestamp; siblings with equal timestamps keep emission order."""
    return sorted(messages, key=lambda message: message.timestamp)


def assemble_session(content: str, parser: SessionParser, strict_lines: int | None = None) -> ParsedSession:
    """
    Parse content with the given parser into a ParsedSession.

    Args:
        content: Raw JSONL text
        parser: Parser whose transform() turns one record into messages
        strict_lines: Leading lines that must be valid JSON (settings default)

    Raises:
        EmptyContentError: Content is empty or whitespace-only
        InvalidJsonLineError: A line in the strict prefix is not valid JSON
    """
    lines = validate_content(content, strict_lines)

    messages: list[ParsedMessage] = []
    session_id: str | None = None

    for line_number, line in enumerate(lines, start=1):
        record = load_record(line)
        if record is None:
            logger.warning('Skipping malformed line %d', line_number)
            continue

        if session_id is None:
            session_id = parser.extract_session_id(record)

        if parse_timestamp(record.get('timestamp')) is None:
            logger.debug('Skipping line %d: missing or invalid timestamp', line_number)
            continue

        try:
            messages.extend(parser.transform(record))
        except (pydantic.ValidationError, ValueError, TypeError) as e:
            # One unexpected record shape must not cost the rest of the session
            logger.warning('Skipping line %d: %s failed to transform record: %r', line_number, parser.name, e)
            continue

    messages = sort_messages(messages)

    if messages:
        start_time = messages[0].timestamp
        end_time = max(message.timestamp for message in messages)
    else:
        start_time = end_time = now_utc()

    return ParsedSession(
        session_id=session_id or fallback_session_id(),
        provider=parser.provider_name,
        messages=messages,
        start_time=start_time,
        end_time=end_time,
        duration=(end_time - start_time) // timedelta(milliseconds=1),
        metadata=SessionMetadata(message_count=len(messages), line_count=len(lines)),
    )
