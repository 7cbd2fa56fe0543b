"""
Content block models and the callable discriminator that dispatches them.

A content block is one typed unit of message content. Four kinds carry meaning
for normalization (text, thinking, tool_use, tool_result); everything else
(image, document, provider-specific parts) validates as UnknownBlock and is
carried through without contributing text or tool events.

Blocks are validated one at a time (parse_content_blocks). A malformed block is
dropped on its own; its siblings in the same record are still processed.

Design Decision: Callable Discriminator for Type Dispatch

Blocks from different providers do not agree on the tag set - Codex writes
input_text/output_text, Claude writes text, some exports omit the tag on plain
strings. get_block_type() normalizes the tag before dispatch so that the union
itself stays closed and the aliases live in one table (BLOCK_TYPE_REGISTRY).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Annotated, Any, Literal

import pydantic
from pydantic import Discriminator, Tag, TypeAdapter, ValidationError

__all__ = [
    'BLOCK_TYPE_REGISTRY',
    'TOOL_RESULT_ID_KEYS',
    'TOOL_USE_ID_KEYS',
    'ContentBlock',
    'TextBlock',
    'ThinkingBlock',
    'ToolResultBlock',
    'ToolUseBlock',
    'UnknownBlock',
    'first_string',
    'get_block_type',
    'parse_content_blocks',
    'parse_tool_arguments',
]

logger = logging.getLogger(__name__)

# Provider block tags mapped to the canonical discriminator tag.
BLOCK_TYPE_REGISTRY: dict[str, str] = {
    'text': 'text',
    'input_text': 'text',
    'output_text': 'text',
    'summary_text': 'text',
    'thinking': 'thinking',
    'reasoning': 'thinking',
    'tool_use': 'tool_use',
    'function_call': 'tool_use',
    'tool_result': 'tool_result',
    'function_call_output': 'tool_result',
}

# Identifier fields in the order they are consulted
TOOL_USE_ID_KEYS = ('id', 'tool_use_id', 'call_id', 'callId')
TOOL_RESULT_ID_KEYS = ('tool_use_id', 'call_id', 'callId')


def first_string(data: Mapping[str, Any], keys: Iterable[str]) -> str | None:
    """Return the first non-empty string value found under any of keys."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def parse_tool_arguments(value: object) -> dict[str, Any]:
    """
    Normalize tool call arguments to a dict.

    Providers write arguments either as an object or as a JSON-encoded string.
    Anything that does not decode to an object becomes {} - a bad argument
    payload degrades the block, it does not invalidate the record.
    """
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and value.strip():
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            logger.debug('Undecodable tool arguments, defaulting to {}: %.80s', value)
            return {}
        if isinstance(decoded, dict):
            return decoded
    return {}


# ==============================================================================
# Block Models
# ==============================================================================


# bool ahead of int so true/false are not read as 1/0
ToolResultContent = str | bool | int | float | list[Any] | dict[str, Any]


class BlockModel(pydantic.BaseModel):
    """Base for content blocks: lax coercion, unknown keys dropped, immutable."""

    model_config = pydantic.ConfigDict(
        extra='ignore',
        frozen=True,
    )


class TextBlock(BlockModel):
    """Plain text content."""

    type: Literal['text'] = 'text'
    text: str = ''

    @pydantic.model_validator(mode='before')
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {**data, 'type': 'text', 'text': data.get('text') or ''}
        return data


class ThinkingBlock(BlockModel):
    """Model-internal reasoning segment, distinct from user-visible text."""

    type: Literal['thinking'] = 'thinking'
    thinking: str = ''
    signature: str | None = None  # Encrypted reasoning has a signature and no text

    @pydantic.model_validator(mode='before')
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if isinstance(data, dict):
            body = data.get('thinking')
            if not isinstance(body, str):
                body = data.get('text') if isinstance(data.get('text'), str) else ''
            data = {**data, 'type': 'thinking', 'thinking': body}
        return data


class ToolUseBlock(BlockModel):
    """A tool invocation. An empty id is resolved later by the linkage resolver."""

    type: Literal['tool_use'] = 'tool_use'
    id: str = ''
    name: str = 'unknown'
    input: dict[str, Any] = pydantic.Field(default_factory=dict)

    @pydantic.model_validator(mode='before')
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if isinstance(data, dict):
            raw_input = data['input'] if 'input' in data else data.get('arguments')
            data = {
                **data,
                'type': 'tool_use',
                'id': first_string(data, TOOL_USE_ID_KEYS) or '',
                'name': data.get('name') if isinstance(data.get('name'), str) and data.get('name') else 'unknown',
                'input': parse_tool_arguments(raw_input),
            }
        return data


class ToolResultBlock(BlockModel):
    """
    Result of a tool invocation.

    Valid only when tool_use_id is non-empty and content is present and
    non-empty. Scalar outputs (numbers, booleans) count as content, zero and
    false included. Anything else fails validation and the block is dropped.
    """

    type: Literal['tool_result'] = 'tool_result'
    tool_use_id: str = pydantic.Field(min_length=1)
    content: ToolResultContent
    is_error: bool | None = None

    @pydantic.model_validator(mode='before')
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {**data, 'type': 'tool_result'}
            linked = first_string(data, TOOL_RESULT_ID_KEYS)
            if linked is not None:
                data['tool_use_id'] = linked
            if 'content' not in data and 'output' in data:
                data['content'] = data['output']
        return data

    @pydantic.field_validator('content')
    @classmethod
    def _content_not_empty(cls, value: ToolResultContent) -> ToolResultContent:
        if isinstance(value, str | list | dict) and not value:
            raise ValueError('tool_result content must not be empty')
        return value


class UnknownBlock(BlockModel):
    """Fallback for block kinds that carry no text or tool event (image, document, ...)."""

    model_config = pydantic.ConfigDict(extra='allow', frozen=True)

    type: str = 'unknown'


# ==============================================================================
# Discriminated union
# ==============================================================================


def get_block_type(v: Any) -> str:
    """
    Callable discriminator for the ContentBlock union.

    Must handle both dict (deserialization) and model instances
    (re-validation of blocks that were already parsed).
    """
    if isinstance(v, str):
        return 'text'
    raw_type = v.get('type') if isinstance(v, dict) else getattr(v, 'type', None)
    if not isinstance(raw_type, str):
        return 'unknown'
    return BLOCK_TYPE_REGISTRY.get(raw_type, 'unknown')


ContentBlock = Annotated[
    Annotated[TextBlock, Tag('text')]
    | Annotated[ThinkingBlock, Tag('thinking')]
    | Annotated[ToolUseBlock, Tag('tool_use')]
    | Annotated[ToolResultBlock, Tag('tool_result')]
    | Annotated[UnknownBlock, Tag('unknown')],
    Discriminator(get_block_type),
]

# Cached adapter for performance
_BLOCK_ADAPTER: TypeAdapter[ContentBlock] = TypeAdapter(ContentBlock)


def parse_content_blocks(items: Iterable[object]) -> list[ContentBlock]:
    """
    Validate raw content items into blocks, dropping the malformed ones.

    Bare strings inside a content array are treated as text blocks. Items that
    are already block models (adapter-built records) pass through unchanged.
    """
    blocks: list[ContentBlock] = []
    for index, item in enumerate(items):
        if isinstance(item, BlockModel):
            blocks.append(item)
            continue
        if isinstance(item, str):
            item = {'type': 'text', 'text': item}
        if not isinstance(item, dict):
            logger.debug('Dropping non-object content block at index %d', index)
            continue
        try:
            blocks.append(_BLOCK_ADAPTER.validate_python(item))
        except ValidationError as e:
            logger.debug('Dropping malformed %s block at index %d: %s', item.get('type'), index, e.error_count())
    return blocks
