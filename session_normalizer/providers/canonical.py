"""
Canonical parser - logs that are already in the canonical record format.

No translation step: each line validates straight into CanonicalRecord and
goes through the decomposer. Records that fail validation yield nothing.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from session_normalizer.normalization.assembly import assemble_session
from session_normalizer.normalization.decomposer import decompose_raw
from session_normalizer.normalization.detection import is_canonical_record, probe_content
from session_normalizer.providers.common import default_session_id
from session_normalizer.schemas.messages import ParsedMessage, ParsedSession


class CanonicalParser:
    name = 'canonical'
    provider_name = 'canonical'
    aliases: tuple[str, ...] = ()

    def detect(self, record: Mapping[str, Any]) -> bool:
        return is_canonical_record(record)

    def can_parse(self, content: str) -> bool:
        return probe_content(content, self.detect)

    def extract_session_id(self, record: Mapping[str, Any]) -> str | None:
        return default_session_id(record)

    def transform(self, record: Mapping[str, Any]) -> list[ParsedMessage]:
        return decompose_raw(record)

    def parse_session(self, content: str) -> ParsedSession:
        return assemble_session(content, self)
