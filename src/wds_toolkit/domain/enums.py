"""Enumerations used across the toolkit."""

from __future__ import annotations

from enum import StrEnum


class ApiVersion(StrEnum):
    """Discovery API generations a connection file may declare."""

    V1 = "v1"
    V2 = "v2"


class AuthenticatorKind(StrEnum):
    """Supported credential types."""

    IAM = "iam"
    CPD = "cpd"
