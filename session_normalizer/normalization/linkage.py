"""
Tool linkage resolver.

Assigns identifiers to tool_use messages, threads the back-reference
(linked_to) from each tool_result message to the tool_use it answers, and
implements the multi-tool policy for adapters (split_tool_blocks).

Linkage is identifier equality only. There is no proximity matching and no
check that the referenced tool_use exists in the session: a result whose
tool_use was never logged still links to its identifier.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from session_normalizer.normalization.timestamps import epoch_millis, parse_timestamp
from session_normalizer.schemas.blocks import (
    TOOL_RESULT_ID_KEYS,
    ContentBlock,
    ToolResultBlock,
    ToolUseBlock,
    first_string,
    parse_content_blocks,
    parse_tool_arguments,
)
from session_normalizer.schemas.messages import MessageType, ParsedMessage, StructuredMessageContent
from session_normalizer.schemas.records import CanonicalMessageBody, CanonicalRecord

__all__ = [
    'build_tool_result_message',
    'build_tool_use_message',
    'ensure_tool_use_id',
    'parse_tool_arguments',
    'resolve_linked_id',
    'resolve_tool_use_id',
    'split_tool_blocks',
    'tool_message_id',
]

logger = logging.getLogger(__name__)


def resolve_tool_use_id(candidate: str | None, timestamp: datetime) -> str:
    """Provider identifier when present, else tool-{epochMillis} of the record."""
    if candidate:
        return candidate
    return f'tool-{epoch_millis(timestamp)}'


def resolve_linked_id(source: ToolResultBlock | Mapping[str, Any]) -> str | None:
    """The tool_use identifier a result refers to (tool_use_id, call_id or callId)."""
    if isinstance(source, ToolResultBlock):
        return source.tool_use_id
    return first_string(source, TOOL_RESULT_ID_KEYS)


def ensure_tool_use_id(block: ToolUseBlock, timestamp: datetime) -> ToolUseBlock:
    """Return the block with a resolved identifier (copy only when it had none)."""
    if block.id:
        return block
    return block.model_copy(update={'id': resolve_tool_use_id(None, timestamp)})


def tool_message_id(uuid: str, block: ToolUseBlock | ToolResultBlock) -> str:
    """Suffixed id of a tool message that is not the record's primary message."""
    if isinstance(block, ToolUseBlock):
        return f'{uuid}-tool-{block.id}'
    return f'{uuid}-result-{block.tool_use_id}'


def _drop_none(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def build_tool_use_message(
    block: ToolUseBlock,
    *,
    message_id: str,
    timestamp: datetime,
    message_type: MessageType = 'tool_use',
    base_metadata: Mapping[str, Any] | None = None,
    parent_id: str | None = None,
) -> ParsedMessage:
    """One tool_use message carrying exactly one tool_use block."""
    metadata = _drop_none(
        {
            **(base_metadata or {}),
            'role': 'tool',
            'toolUseId': block.id,
            'toolName': block.name,
            'hasToolUses': True,
            'toolCount': 1,
        }
    )
    return ParsedMessage(
        id=message_id,
        timestamp=timestamp,
        type=message_type,
        content=StructuredMessageContent(tool_use=block, tool_uses=[block], structured=[block]),
        metadata=metadata,
        parent_id=parent_id,
    )


def build_tool_result_message(
    block: ToolResultBlock,
    *,
    message_id: str,
    timestamp: datetime,
    message_type: MessageType = 'tool_result',
    base_metadata: Mapping[str, Any] | None = None,
    parent_id: str | None = None,
) -> ParsedMessage:
    """One tool_result message; linked_to always names the answered tool_use."""
    metadata = _drop_none(
        {
            **(base_metadata or {}),
            'role': 'tool',
            'toolUseId': block.tool_use_id,
            'hasToolResults': True,
            'resultCount': 1,
            'isError': block.is_error,
        }
    )
    return ParsedMessage(
        id=message_id,
        timestamp=timestamp,
        type=message_type,
        content=StructuredMessageContent(tool_result=block, tool_results=[block], structured=[block]),
        metadata=metadata,
        parent_id=parent_id,
        linked_to=block.tool_use_id,
    )


def split_tool_blocks(record: CanonicalRecord) -> list[CanonicalRecord]:
    """
    Split a record so that each canonical record carries at most one tool block.

    The first record keeps the original uuid, every non-tool block and the
    first tool block. Each further tool block becomes its own record with id
    {uuid}-tool-{id} or {uuid}-result-{toolUseId}, parentUuid set to the
    original uuid and no usage (usage is counted once, on the original).
    Malformed tool_result blocks are dropped here rather than carried along.
    """
    if isinstance(record.message.content, str):
        return [record]

    blocks = parse_content_blocks(record.message.content)
    tool_blocks = [block for block in blocks if isinstance(block, ToolUseBlock | ToolResultBlock)]
    if len(tool_blocks) <= 1:
        return [record]

    timestamp = parse_timestamp(record.timestamp)
    if timestamp is None:
        # Dropped by the decomposer anyway
        return [record]

    first_tool = tool_blocks[0]
    head_blocks: list[ContentBlock] = [
        block for block in blocks if block is first_tool or not isinstance(block, ToolUseBlock | ToolResultBlock)
    ]
    split = [_with_blocks(record, head_blocks)]

    for block in tool_blocks[1:]:
        if isinstance(block, ToolUseBlock):
            block = ensure_tool_use_id(block, timestamp)
        split.append(
            _with_blocks(
                record,
                [block],
                uuid=tool_message_id(record.uuid, block),
                parent_uuid=record.uuid,
                strip_usage=True,
            )
        )

    logger.debug('Split record %s into %d records', record.uuid, len(split))
    return split


def _with_blocks(
    record: CanonicalRecord,
    blocks: list[ContentBlock],
    *,
    uuid: str | None = None,
    parent_uuid: str | None = None,
    strip_usage: bool = False,
) -> CanonicalRecord:
    body_update: dict[str, Any] = {'content': blocks}
    if strip_usage:
        body_update['usage'] = None
    message: CanonicalMessageBody = record.message.model_copy(update=body_update)

    update: dict[str, Any] = {'message': message}
    if uuid is not None:
        update['uuid'] = uuid
        update['parentUuid'] = parent_uuid
    return record.model_copy(update=update)
