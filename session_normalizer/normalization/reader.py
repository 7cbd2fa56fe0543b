"""
Raw record reader - line splitting and structural validation of a JSONL blob.

Two tiers of strictness:
- The first STRICT_JSON_LINE_LIMIT non-empty lines must decode as JSON, else
  the whole blob is rejected (InvalidJsonLineError). A log whose head is not
  JSON is not a log.
- Every later line is decoded independently; a bad one is logged and skipped.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from session_normalizer.config import settings
from session_normalizer.exceptions import EmptyContentError, InvalidJsonLineError

__all__ = [
    'iter_lines',
    'load_record',
    'validate_content',
]

logger = logging.getLogger(__name__)


def iter_lines(content: str) -> list[str]:
    """Split content on newlines, strip each line, drop blank ones."""
    return [stripped for line in content.split('\n') if (stripped := line.strip())]


def validate_content(content: str, strict_lines: int | None = None) -> list[str]:
    """
    Reject content that cannot be a log at all.

    Args:
        content: Raw JSONL text
        strict_lines: How many leading non-empty lines must be valid JSON
            (defaults to settings.STRICT_JSON_LINE_LIMIT)

    Returns:
        The non-empty stripped lines, so callers don't split twice

    Raises:
        EmptyContentError: Content is empty or whitespace-only
        InvalidJsonLineError: A line in the strict prefix is not valid JSON
    """
    if not content or not content.strip():
        raise EmptyContentError()

    limit = settings.STRICT_JSON_LINE_LIMIT if strict_lines is None else strict_lines
    lines = iter_lines(content)

    for index, line in enumerate(lines[:limit]):
        try:
            json.loads(line)
        except json.JSONDecodeError as e:
            raise InvalidJsonLineError(index + 1) from e

    return lines


def load_record(line: str) -> dict[str, Any] | None:
    """
    Decode one line into a raw record.

    Returns None for lines that are not JSON or not a JSON object.
    """
    try:
        record = json.loads(line)
    except json.JSONDecodeError:
        logger.debug('Skipping undecodable line: %.80s', line)
        return None
    if not isinstance(record, dict):
        logger.debug('Skipping non-object JSON line: %.80s', line)
        return None
    return record
