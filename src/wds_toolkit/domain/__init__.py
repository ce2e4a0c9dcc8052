"""Domain models shared across the toolkit."""

from .base import DomainModel, PermissiveModel
from .connection import REQUIRED_FIELDS, ConnectionInfo
from .enums import ApiVersion, AuthenticatorKind
from .training import LogQueryEntry, TrainingExample, TrainingMatch, TrainingQuery

__all__ = [
    "REQUIRED_FIELDS",
    "ApiVersion",
    "AuthenticatorKind",
    "ConnectionInfo",
    "DomainModel",
    "LogQueryEntry",
    "PermissiveModel",
    "TrainingExample",
    "TrainingMatch",
    "TrainingQuery",
]
