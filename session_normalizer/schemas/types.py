"""
Shared type definitions for schemas.

Centralizes the foundation models used by the input, block and output schemas.

Layering:
- This module provides FOUNDATION types (BaseStrictModel, PermissiveModel, OutputModel)
- records.py builds provider-tolerant input records on PermissiveModel
- messages.py builds the canonical output on OutputModel
"""

from __future__ import annotations

import pydantic
from pydantic.alias_generators import to_camel

# ==============================================================================
# Base Strict Model (Foundation)
# ==============================================================================


class BaseStrictModel(pydantic.BaseModel):
    """
    Foundation strict model - output schemas inherit from this.

    Uses extra='forbid' to reject unknown fields - any field not modeled
    causes immediate validation failure (fail-fast). Output is produced by
    this package, so a failure here is a bug in the normalizer, never in a log.
    """

    model_config = pydantic.ConfigDict(
        extra='forbid',  # Reject unknown fields (fail-fast)
        strict=True,  # Strict type coercion
        frozen=True,  # Immutable after creation
    )


# ==============================================================================
# Permissive Model (Foundation)
# ==============================================================================


class PermissiveModel(pydantic.BaseModel):
    """
    Foundation permissive model for provider-written input.

    Symmetry with BaseStrictModel:
    - BaseStrictModel: extra='forbid' (rejects unknown fields)
    - PermissiveModel: extra='allow' (accepts unknown fields)

    Provider logs grow new fields between releases. Input records keep those
    fields as extras instead of failing, so a new field never costs a message.
    """

    model_config = pydantic.ConfigDict(
        extra='allow',  # Accept unknown fields (graceful fallback)
        strict=True,  # Strict type coercion for known fields
        frozen=True,  # Immutable after creation
    )

    def get_extra_fields(self) -> dict[str, object]:
        """Get extra fields captured by this permissive model.

        Returns only the unknown fields, not defined model fields.
        """
        return dict(self.__pydantic_extra__) if self.__pydantic_extra__ else {}


# ==============================================================================
# Output Model (camelCase wire shape)
# ==============================================================================


class OutputModel(BaseStrictModel):
    """
    Strict model whose JSON form uses camelCase keys.

    Python attributes stay snake_case (message.parent_id); model_dump(by_alias=True)
    produces the wire keys consumers expect (parentId, linkedTo, toolUses).
    """

    model_config = pydantic.ConfigDict(
        extra='forbid',
        strict=True,
        frozen=True,
        alias_generator=pydantic.AliasGenerator(serialization_alias=to_camel),
    )
