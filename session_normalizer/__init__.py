"""
session-normalizer: normalize AI coding-assistant session logs.

Typical use:

    from session_normalizer import parse_session

    session = parse_session(jsonl_text)              # auto-detect the format
    session = parse_session(jsonl_text, 'codex')     # or name the provider
"""

from __future__ import annotations

from session_normalizer.exceptions import (
    EmptyContentError,
    InvalidJsonLineError,
    NoSuitableParserError,
    ParserResolutionError,
    SessionContentError,
    SessionNormalizerError,
)
from session_normalizer.registry import ParserRegistry, parse_session, parser_registry, register_parser
from session_normalizer.schemas.messages import ParsedMessage, ParsedSession, StructuredMessageContent

__all__ = [
    'EmptyContentError',
    'InvalidJsonLineError',
    'NoSuitableParserError',
    'ParsedMessage',
    'ParsedSession',
    'ParserRegistry',
    'ParserResolutionError',
    'SessionContentError',
    'SessionNormalizerError',
    'StructuredMessageContent',
    'parse_session',
    'parser_registry',
    'register_parser',
]
