"""Core base classes for domain models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class DomainModel(BaseModel):
    """Immutable domain model base with strict validation."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_assignment=True)


class PermissiveModel(BaseModel):
    """Immutable model that tolerates (and keeps) unknown keys from input files."""

    model_config = ConfigDict(frozen=True, extra="allow")
