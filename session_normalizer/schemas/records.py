"""
Canonical record model - the wire input to the decomposer.

Every adapter converges on this shape before decomposition. Logs that are
already canonical are validated into it directly.

Field names follow the JSON wire format (camelCase) so records validate
straight from a decoded line without aliasing.
"""

from __future__ import annotations

from typing import Annotated, Any

import pydantic

from session_normalizer.schemas.types import PermissiveModel

__all__ = [
    'CANONICAL_RECORD_TYPES',
    'CanonicalMessageBody',
    'CanonicalRecord',
    'NonEmptyStr',
]

CANONICAL_RECORD_TYPES = frozenset({'user', 'assistant', 'meta'})

type NonEmptyStr = Annotated[str, pydantic.Field(min_length=1)]


class CanonicalMessageBody(PermissiveModel):
    """The `message` object of a canonical record."""

    role: str | None = None
    content: str | list[Any]
    model: str | None = None
    usage: dict[str, Any] | None = None


class CanonicalRecord(PermissiveModel):
    """
    One canonical log record.

    uuid, timestamp, type and message are required. The timestamp is kept raw
    (ISO string or epoch number) and parsed by the decomposer, which drops the
    record when it does not resolve to a valid instant. `type` is free-form:
    anything other than user/assistant classifies as meta.
    """

    uuid: NonEmptyStr
    timestamp: str | int | float
    type: NonEmptyStr
    message: CanonicalMessageBody

    sessionId: str | None = None
    provider: str | None = None
    parentUuid: str | None = None
    providerMetadata: dict[str, Any] | None = None
    cwd: str | None = None
    gitBranch: str | None = None
    version: str | None = None
    requestId: str | None = None

    isMeta: bool | None = None
    isSidechain: bool | None = None
    isCompactSummary: bool | None = None
    userType: str | None = None
