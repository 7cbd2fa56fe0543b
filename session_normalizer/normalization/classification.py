"""
Message classifier - recovers semantic message types from content.

Source logs label records only as user/assistant (or something else). Whether a
user record is actually a slash command, an interruption notice, or a context
compaction event has to be read from its text. The rules live in one ordered
table (CLASSIFICATION_RULES); the first rule whose predicate matches decides
the type.

Compaction, interruption and command rules only look at user records. The
interruption and command rules are all-or-nothing: every non-empty text
segment must match, so a real prompt that merely mentions a command stays
user_input.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from session_normalizer.schemas.messages import MessageType

__all__ = [
    'CLASSIFICATION_RULES',
    'COMPACT_COMMAND_MARKER',
    'INTERRUPTION_MARKERS',
    'ClassificationInput',
    'ClassificationRule',
    'classify',
    'is_command_text',
    'is_compact_text',
    'is_interruption_text',
    'is_only_command',
    'is_only_compact',
    'is_only_interruption',
    'is_thinking_text',
    'unwrap_thinking',
]

INTERRUPTION_MARKERS = ('[Request interrupted by user]', 'Request interrupted by user')
COMPACT_COMMAND_MARKER = '<command-name>/compact</command-name>'
COMMAND_NAME_MARKER = '<command-name>'

# A bare "/compact" invocation, possibly with a short instruction after it
_COMPACT_PREFIX = '/compact'
_COMPACT_MAX_LENGTH = 50

_THINKING_WRAPPER = re.compile(r'^\s*<thinking>(.*)</thinking>\s*$', re.DOTALL)


# ==============================================================================
# Text predicates
# ==============================================================================


def is_interruption_text(text: str) -> bool:
    return any(marker in text for marker in INTERRUPTION_MARKERS)


def is_command_text(text: str) -> bool:
    """Slash invocation ("/review") or a rendered <command-name> envelope."""
    return text.lstrip().startswith('/') or COMMAND_NAME_MARKER in text


def is_compact_text(text: str) -> bool:
    if COMPACT_COMMAND_MARKER in text:
        return True
    trimmed = text.strip()
    return trimmed.startswith(_COMPACT_PREFIX) and len(trimmed) < _COMPACT_MAX_LENGTH


def is_thinking_text(text: str) -> bool:
    """Text wholly wrapped in <thinking>...</thinking>."""
    return _THINKING_WRAPPER.match(text) is not None


def unwrap_thinking(text: str) -> str:
    """Return the body of a <thinking> wrapper, or the text unchanged."""
    match = _THINKING_WRAPPER.match(text)
    return match.group(1).strip('\n') if match else text


def _non_empty(segments: Sequence[str]) -> list[str]:
    return [segment for segment in segments if segment.strip()]


def is_only_interruption(segments: Sequence[str]) -> bool:
    """True when there is at least one segment and every non-empty one is an interruption marker."""
    non_empty = _non_empty(segments)
    return bool(non_empty) and all(is_interruption_text(segment) for segment in non_empty)


def is_only_command(segments: Sequence[str]) -> bool:
    """True when there is at least one segment and every non-empty one is a command."""
    non_empty = _non_empty(segments)
    return bool(non_empty) and all(is_command_text(segment) for segment in non_empty)


def is_only_compact(segments: Sequence[str]) -> bool:
    """The compact marker in any segment, or the whole trimmed text is a short /compact invocation."""
    if any(COMPACT_COMMAND_MARKER in segment for segment in segments):
        return True
    return is_compact_text('\n'.join(segments))


# ==============================================================================
# Rule table
# ==============================================================================


@dataclass(frozen=True)
class ClassificationInput:
    """What the classifier sees of one (possibly partial) record."""

    record_type: str
    segments: Sequence[str] = ()
    has_tool_use: bool = False
    has_tool_result: bool = False
    is_compact_summary: bool = False

    @property
    def is_user(self) -> bool:
        return self.record_type == 'user'


@dataclass(frozen=True)
class ClassificationRule:
    message_type: MessageType
    matches: Callable[[ClassificationInput], bool]


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule('tool_result', lambda c: c.has_tool_result),
    ClassificationRule(
        'compact',
        lambda c: c.is_user and (c.is_compact_summary or is_only_compact(c.segments)),
    ),
    ClassificationRule('interruption', lambda c: c.is_user and is_only_interruption(c.segments)),
    ClassificationRule('command', lambda c: c.is_user and is_only_command(c.segments)),
    ClassificationRule('user_input', lambda c: c.is_user),
    ClassificationRule('tool_use', lambda c: c.record_type == 'assistant' and c.has_tool_use),
    ClassificationRule('assistant_response', lambda c: c.record_type == 'assistant'),
)


def classify(candidate: ClassificationInput) -> MessageType:
    """First matching rule wins; anything unmatched is meta."""
    for rule in CLASSIFICATION_RULES:
        if rule.matches(candidate):
            return rule.message_type
    return 'meta'
