"""
Schema definitions for session-normalizer.

This package contains Pydantic models for:
- blocks: content block union (text, thinking, tool_use, tool_result, unknown)
- records: canonical record, the shared input shape of the decomposer
- messages: canonical output (ParsedMessage, ParsedSession)
"""

from __future__ import annotations

from session_normalizer.schemas.blocks import (
    ContentBlock,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    UnknownBlock,
)
from session_normalizer.schemas.messages import (
    MESSAGE_TYPES,
    MessageType,
    ParsedMessage,
    ParsedSession,
    SessionMetadata,
    StructuredMessageContent,
)
from session_normalizer.schemas.records import CanonicalMessageBody, CanonicalRecord

__all__ = [
    'MESSAGE_TYPES',
    'CanonicalMessageBody',
    'CanonicalRecord',
    'ContentBlock',
    'MessageType',
    'ParsedMessage',
    'ParsedSession',
    'SessionMetadata',
    'StructuredMessageContent',
    'TextBlock',
    'ThinkingBlock',
    'ToolResultBlock',
    'ToolUseBlock',
    'UnknownBlock',
]
