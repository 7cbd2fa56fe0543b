"""
Canonical output models: ParsedMessage and ParsedSession.

These are the durable output of a parse pass. They are strict and frozen -
every instance is constructed by this package, so a validation failure here
is a normalizer bug rather than a property of the input log.

Serialization: attributes are snake_case; to_json_dict() emits the camelCase
wire shape (parentId, linkedTo, toolUses, startTime, messageCount, ...).
"""

from __future__ import annotations

import typing
from collections.abc import Sequence
from typing import Any, Literal

import pydantic

from session_normalizer.schemas.blocks import ContentBlock, ToolResultBlock, ToolUseBlock
from session_normalizer.schemas.types import OutputModel

__all__ = [
    'MESSAGE_TYPES',
    'MessageType',
    'ParsedMessage',
    'ParsedSession',
    'SessionMetadata',
    'StructuredMessageContent',
]

MessageType = Literal[
    'user_input',
    'assistant_response',
    'tool_use',
    'tool_result',
    'command',
    'interruption',
    'compact',
    'meta',
]

MESSAGE_TYPES: tuple[str, ...] = typing.get_args(MessageType)


class StructuredMessageContent(OutputModel):
    """Render-ready projection of the content blocks belonging to one message."""

    type: Literal['structured'] = 'structured'
    text: str | None = None
    tool_use: ToolUseBlock | None = None
    tool_uses: list[ToolUseBlock] = pydantic.Field(default_factory=list)
    tool_result: ToolResultBlock | None = None
    tool_results: list[ToolResultBlock] = pydantic.Field(default_factory=list)
    structured: list[ContentBlock] = pydantic.Field(default_factory=list)


class ParsedMessage(OutputModel):
    """
    The canonical output unit.

    Messages split out of one record share that record's timestamp. `linked_to`
    is set on tool_result messages and names the tool_use identifier; `parent_id`
    is set on the tool message that follows a text sibling.
    """

    id: str = pydantic.Field(min_length=1)
    timestamp: pydantic.AwareDatetime
    type: MessageType
    content: str | StructuredMessageContent
    metadata: dict[str, Any] = pydantic.Field(default_factory=dict)
    parent_id: str | None = None
    linked_to: str | None = None

    @property
    def text(self) -> str:
        """Plain text of the message regardless of content shape."""
        if isinstance(self.content, str):
            return self.content
        return self.content.text or ''

    @property
    def tool_uses(self) -> Sequence[ToolUseBlock]:
        if isinstance(self.content, str):
            return ()
        return self.content.tool_uses

    @property
    def tool_results(self) -> Sequence[ToolResultBlock]:
        if isinstance(self.content, str):
            return ()
        return self.content.tool_results


class SessionMetadata(OutputModel):
    message_count: int = pydantic.Field(ge=0)
    line_count: int = pydantic.Field(ge=0)


class ParsedSession(OutputModel):
    """
    A fully assembled session.

    Invariants:
    - messages sorted ascending by timestamp (stable for equal timestamps)
    - start_time/end_time are the min/max message timestamps
    - duration is end_time - start_time in whole milliseconds, never negative
    """

    session_id: str = pydantic.Field(min_length=1)
    provider: str
    messages: list[ParsedMessage]
    start_time: pydantic.AwareDatetime
    end_time: pydantic.AwareDatetime
    duration: int = pydantic.Field(ge=0)
    metadata: SessionMetadata

    @pydantic.model_validator(mode='after')
    def _check_time_bounds(self) -> ParsedSession:
        if self.end_time < self.start_time:
            raise ValueError('end_time precedes start_time')
        return self

    def to_json_dict(self) -> dict[str, Any]:
        """Wire shape: camelCase keys, ISO timestamps, unset optionals omitted."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)
