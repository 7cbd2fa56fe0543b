"""
Canonical decomposer - turns one canonical record into zero or more messages.

This is the path every provider converges on. Adapters translate their records
into CanonicalRecord and hand them here; canonical logs come here directly.

Decomposition of a record with content blocks B:

1. B empty (or string content blank): no messages.
2. Every block a thought and |B| > 1: one assistant_response per thought, id
   {uuid}-thinking-{index}. Empty thoughts are dropped; the first surviving
   thought carries usage.
3. Otherwise text/thinking bodies are joined with newlines, leading newlines
   stripped and 3+ trailing newlines collapsed to 2.
4. Text and tool blocks: text message {uuid}-text, first tool message {uuid}
   with parent_id {uuid}-text. Text only, or tool only: a single message {uuid}.
   Further tool blocks get {uuid}-tool-{id} / {uuid}-result-{toolUseId}.

Sibling messages share the record timestamp and are emitted text first, then
tool_use, then tool_result. Usage metadata goes on the first emitted message
only, so token totals summed over messages are not double-counted.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

import pydantic

from session_normalizer.normalization.classification import (
    ClassificationInput,
    classify,
    is_thinking_text,
    unwrap_thinking,
)
from session_normalizer.normalization.linkage import (
    build_tool_result_message,
    build_tool_use_message,
    ensure_tool_use_id,
    split_tool_blocks,
    tool_message_id,
)
from session_normalizer.normalization.timestamps import parse_timestamp
from session_normalizer.schemas.blocks import (
    ContentBlock,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    parse_content_blocks,
)
from session_normalizer.schemas.messages import ParsedMessage, StructuredMessageContent
from session_normalizer.schemas.records import CanonicalRecord

__all__ = [
    'decompose_raw',
    'decompose_record',
    'decompose_records',
    'normalize_text',
    'record_metadata',
    'validate_record',
]

logger = logging.getLogger(__name__)

_LEADING_NEWLINES = re.compile(r'^\n+')
_TRAILING_NEWLINES = re.compile(r'\n{3,}$')


def normalize_text(text: str) -> str:
    """Strip leading newlines and collapse a run of 3+ trailing newlines to 2."""
    return _TRAILING_NEWLINES.sub('\n\n', _LEADING_NEWLINES.sub('', text))


def _drop_none(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def record_metadata(record: CanonicalRecord, *, has_thinking: bool = False, include_usage: bool = True) -> dict[str, Any]:
    """Metadata of the primary (text) message of a record. None values are omitted."""
    return _drop_none(
        {
            'role': record.message.role,
            'sessionId': record.sessionId,
            'provider': record.provider,
            'cwd': record.cwd,
            'gitBranch': record.gitBranch,
            'version': record.version,
            'model': record.message.model,
            'usage': record.message.usage if include_usage else None,
            'providerMetadata': record.providerMetadata,
            'requestId': record.requestId,
            'isMeta': record.isMeta,
            'isSidechain': record.isSidechain,
            'userType': record.userType,
            'hasThinking': True if has_thinking else None,
        }
    )


def _tool_metadata(record: CanonicalRecord, *, include_usage: bool) -> dict[str, Any]:
    return _drop_none(
        {
            'sessionId': record.sessionId,
            'provider': record.provider,
            'model': record.message.model,
            'usage': record.message.usage if include_usage else None,
            'providerMetadata': record.providerMetadata,
            'requestId': record.requestId,
            'isSidechain': record.isSidechain,
        }
    )


def _thought_body(block: ContentBlock) -> str | None:
    """Body of a thinking segment, or None when the block is not one."""
    match block:
        case ThinkingBlock():
            return block.thinking
        case TextBlock() if is_thinking_text(block.text):
            return unwrap_thinking(block.text)
        case _:
            return None


# ==============================================================================
# Decomposition
# ==============================================================================


def validate_record(raw: Mapping[str, Any]) -> CanonicalRecord | None:
    """Validate a decoded line as a canonical record; None when it is not one."""
    try:
        return CanonicalRecord.model_validate(raw)
    except pydantic.ValidationError as e:
        logger.debug('Dropping non-canonical record %s: %d validation errors', raw.get('uuid'), e.error_count())
        return None


def decompose_raw(raw: Mapping[str, Any]) -> list[ParsedMessage]:
    record = validate_record(raw)
    if record is None:
        return []
    return decompose_record(record)


def decompose_records(records: Iterable[CanonicalRecord], *, split: bool = True) -> list[ParsedMessage]:
    """
    Decompose adapter-built records.

    With split=True (the adapter policy) each record is first split so that it
    carries at most one tool block.
    """
    messages: list[ParsedMessage] = []
    for record in records:
        for part in split_tool_blocks(record) if split else [record]:
            messages.extend(decompose_record(part))
    return messages


def decompose_record(record: CanonicalRecord) -> list[ParsedMessage]:
    """Decompose one canonical record. Records without a valid timestamp yield nothing."""
    timestamp = parse_timestamp(record.timestamp)
    if timestamp is None:
        logger.debug('Dropping record %s: invalid timestamp %r', record.uuid, record.timestamp)
        return []

    content = record.message.content
    if isinstance(content, str):
        return _decompose_text(record, content, timestamp)

    blocks = parse_content_blocks(content)
    if not blocks:
        return []

    if len(blocks) > 1 and all(_thought_body(block) is not None for block in blocks):
        return _fan_out_thoughts(record, blocks, timestamp)

    return _decompose_blocks(record, blocks, timestamp)


def _decompose_text(record: CanonicalRecord, content: str, timestamp: datetime) -> list[ParsedMessage]:
    if not content.strip():
        return []

    has_thinking = is_thinking_text(content)
    text = normalize_text(unwrap_thinking(content) if has_thinking else content)
    message_type = classify(
        ClassificationInput(
            record_type=record.type,
            segments=() if has_thinking else (content,),
            is_compact_summary=bool(record.isCompactSummary),
        )
    )
    return [
        ParsedMessage(
            id=record.uuid,
            timestamp=timestamp,
            type=message_type,
            content=text,
            metadata=record_metadata(record, has_thinking=has_thinking),
            parent_id=record.parentUuid,
        )
    ]


def _fan_out_thoughts(record: CanonicalRecord, blocks: list[ContentBlock], timestamp: datetime) -> list[ParsedMessage]:
    messages: list[ParsedMessage] = []
    for index, block in enumerate(blocks):
        body = normalize_text(_thought_body(block) or '')
        if not body.strip():
            continue
        messages.append(
            ParsedMessage(
                id=f'{record.uuid}-thinking-{index}',
                timestamp=timestamp,
                type='assistant_response',
                content=StructuredMessageContent(text=body, structured=[block]),
                metadata=record_metadata(record, has_thinking=True, include_usage=not messages),
                parent_id=record.parentUuid,
            )
        )
    return messages


def _decompose_blocks(record: CanonicalRecord, blocks: list[ContentBlock], timestamp: datetime) -> list[ParsedMessage]:
    bodies: list[str] = []
    segments: list[str] = []
    prose_blocks: list[ContentBlock] = []
    tool_uses: list[ToolUseBlock] = []
    tool_results: list[ToolResultBlock] = []
    has_thinking = False

    for block in blocks:
        match block:
            case ToolUseBlock():
                tool_uses.append(ensure_tool_use_id(block, timestamp))
            case ToolResultBlock():
                tool_results.append(block)
            case _:
                prose_blocks.append(block)
                thought = _thought_body(block)
                if thought is not None:
                    has_thinking = True
                    bodies.append(thought)
                elif isinstance(block, TextBlock):
                    bodies.append(block.text)
                    segments.append(block.text)

    text = normalize_text('\n'.join(body for body in bodies if body))
    has_text = bool(text.strip())
    tool_blocks: list[ToolUseBlock | ToolResultBlock] = [*tool_uses, *tool_results]

    messages: list[ParsedMessage] = []
    if has_text:
        messages.append(
            ParsedMessage(
                id=f'{record.uuid}-text' if tool_blocks else record.uuid,
                timestamp=timestamp,
                type=classify(
                    ClassificationInput(
                        record_type=record.type,
                        segments=segments,
                        is_compact_summary=bool(record.isCompactSummary),
                    )
                ),
                content=StructuredMessageContent(text=text, structured=prose_blocks),
                metadata=record_metadata(record, has_thinking=has_thinking),
                parent_id=record.parentUuid,
            )
        )

    for index, block in enumerate(tool_blocks):
        if index == 0:
            message_id = record.uuid
            parent_id = f'{record.uuid}-text' if has_text else record.parentUuid
        else:
            message_id = tool_message_id(record.uuid, block)
            parent_id = record.uuid

        base_metadata = _tool_metadata(record, include_usage=not messages)
        message_type = classify(
            ClassificationInput(
                record_type=record.type,
                has_tool_use=isinstance(block, ToolUseBlock),
                has_tool_result=isinstance(block, ToolResultBlock),
            )
        )
        if isinstance(block, ToolUseBlock):
            message = build_tool_use_message(
                block,
                message_id=message_id,
                timestamp=timestamp,
                message_type=message_type,
                base_metadata=base_metadata,
                parent_id=parent_id,
            )
        else:
            message = build_tool_result_message(
                block,
                message_id=message_id,
                timestamp=timestamp,
                message_type=message_type,
                base_metadata=base_metadata,
                parent_id=parent_id,
            )
        messages.append(message)

    return messages
