"""
Read-only queries over an assembled session.

Consumers (metrics, timelines) ask the same few questions of every session:
which tools ran, which results came back, where the user interrupted, and how
long the assistant took to answer. These helpers answer them on the canonical
stream, so they work the same for every provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from session_normalizer.normalization.classification import is_interruption_text
from session_normalizer.schemas.blocks import ToolResultBlock, ToolUseBlock
from session_normalizer.schemas.messages import ParsedMessage, ParsedSession

__all__ = [
    'ResponseTime',
    'ToolCallPair',
    'calculate_response_times',
    'extract_tool_results',
    'extract_tool_uses',
    'find_interruptions',
    'pair_tool_calls',
]


@dataclass(frozen=True)
class ResponseTime:
    user_message: ParsedMessage
    assistant_message: ParsedMessage
    response_time_ms: int


@dataclass(frozen=True)
class ToolCallPair:
    """A tool_use message and the result linked to it. Either side may be missing."""

    tool_id: str
    tool_use: ParsedMessage | None
    tool_result: ParsedMessage | None


def extract_tool_uses(session: ParsedSession) -> list[ToolUseBlock]:
    return [block for message in session.messages for block in message.tool_uses]


def extract_tool_results(session: ParsedSession) -> list[ToolResultBlock]:
    return [block for message in session.messages for block in message.tool_results]


def find_interruptions(session: ParsedSession) -> list[ParsedMessage]:
    """Interruption messages, plus user inputs that mention an interruption marker."""
    return [
        message
        for message in session.messages
        if message.type == 'interruption' or (message.type == 'user_input' and is_interruption_text(message.text))
    ]


def calculate_response_times(session: ParsedSession) -> list[ResponseTime]:
    """Milliseconds between a user input and the assistant response that immediately follows it."""
    response_times = []
    for current, following in zip(session.messages, session.messages[1:]):
        if current.type == 'user_input' and following.type == 'assistant_response':
            elapsed = following.timestamp - current.timestamp
            response_times.append(
                ResponseTime(
                    user_message=current,
                    assistant_message=following,
                    response_time_ms=elapsed // timedelta(milliseconds=1),
                )
            )
    return response_times


def pair_tool_calls(session: ParsedSession) -> list[ToolCallPair]:
    """
    Pair tool_use messages with their results by identifier equality.

    Pairs come in tool_use order; results whose tool_use is not in the session
    are appended with tool_use=None. A tool_use that never got a result has
    tool_result=None.
    """
    uses: dict[str, ParsedMessage] = {}
    results: dict[str, ParsedMessage] = {}
    orphans: list[ToolCallPair] = []

    for message in session.messages:
        for block in message.tool_uses:
            uses.setdefault(block.id, message)
        if message.type == 'tool_result' and message.linked_to:
            results.setdefault(message.linked_to, message)

    pairs = [ToolCallPair(tool_id, message, results.get(tool_id)) for tool_id, message in uses.items()]
    for tool_id, message in results.items():
        if tool_id not in uses:
            orphans.append(ToolCallPair(tool_id, None, message))
    return pairs + orphans
