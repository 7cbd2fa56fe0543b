"""
Session parsers: the canonical parser, one adapter per provider log format,
and the generic fallback.
"""

from __future__ import annotations

from session_normalizer.providers.canonical import CanonicalParser
from session_normalizer.providers.claude_code import ClaudeCodeParser
from session_normalizer.providers.codex import CodexParser
from session_normalizer.providers.gemini import GeminiParser
from session_normalizer.providers.generic import GenericParser
from session_normalizer.providers.github_copilot import CopilotParser
from session_normalizer.providers.opencode import OpenCodeParser
from session_normalizer.providers.protocol import SessionParser

__all__ = [
    'CanonicalParser',
    'ClaudeCodeParser',
    'CodexParser',
    'CopilotParser',
    'GeminiParser',
    'GenericParser',
    'OpenCodeParser',
    'SessionParser',
]
