"""
Shared exceptions for session-normalizer.

Only structural failures surface as exceptions. Record-local and block-local
problems (a bad line past the strict prefix, an unparsable timestamp, a
malformed tool_result block) are logged and dropped by the component that
hits them.

Exception Hierarchy:
    SessionNormalizerError (base)
    ├── SessionContentError (the log blob itself is unusable)
    │   ├── EmptyContentError (empty or whitespace-only content)
    │   └── InvalidJsonLineError (a line in the strict prefix is not JSON)
    └── ParserResolutionError (parser lookup/selection failures)
        └── NoSuitableParserError (no hint match, no detection, no fallback)
"""

from __future__ import annotations


class SessionNormalizerError(Exception):
    """Base exception for all session-normalizer errors."""


class SessionContentError(SessionNormalizerError):
    """Base exception for content that cannot be parsed at all."""


class EmptyContentError(SessionContentError):
    """Raised when the content is empty or contains only whitespace."""

    def __init__(self) -> None:
        super().__init__('Content is empty')


class InvalidJsonLineError(SessionContentError):
    """Raised when one of the leading non-empty lines is not valid JSON."""

    def __init__(self, line_number: int) -> None:
        self.line_number = line_number
        super().__init__(f'Invalid JSON on line {line_number}')


class ParserResolutionError(SessionNormalizerError):
    """Base exception for parser lookup and selection failures."""


class NoSuitableParserError(ParserResolutionError):
    """Raised when neither a provider hint nor auto-detection selects a parser."""

    def __init__(self) -> None:
        super().__init__('No suitable parser found for content')
