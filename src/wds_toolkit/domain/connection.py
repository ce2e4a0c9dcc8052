"""Connection file model and loader."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError, model_validator

from wds_toolkit.exceptions import FatalSetupError

from .base import PermissiveModel
from .enums import ApiVersion, AuthenticatorKind

REQUIRED_FIELDS = (
    "version",
    "url",
    "environment_id",
    "collection_id",
    "authenticator",
    "api_version",
)


class ConnectionInfo(PermissiveModel):
    """Everything needed to reach one collection."""

    version: str
    url: str
    environment_id: str
    collection_id: str
    authenticator: AuthenticatorKind
    api_version: ApiVersion
    apikey: str | None = None
    cluster_url: str | None = None
    username: str | None = None
    password: str | None = None
    project_id: str | None = None
    production: bool = False
    disable_ssl_verification: bool = False

    @model_validator(mode="after")
    def _check_credentials(self) -> ConnectionInfo:
        if self.authenticator is AuthenticatorKind.IAM and not self.apikey:
            msg = "iam authenticator requires apikey"
            raise ValueError(msg)
        if self.authenticator is AuthenticatorKind.CPD and not (
            self.cluster_url and self.username and self.password
        ):
            msg = "cpd authenticator requires cluster_url, username and password"
            raise ValueError(msg)
        return self

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> ConnectionInfo:
        missing = [name for name in REQUIRED_FIELDS if data.get(name) in (None, "")]
        if missing:
            msg = f"connection is missing values: {', '.join(missing)}"
            raise FatalSetupError(msg)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            msg = f"Invalid connection: {exc.errors()[0].get('msg', exc)}"
            raise FatalSetupError(msg) from exc

    @classmethod
    def from_path(cls, path: str | Path) -> ConnectionInfo:
        try:
            data = json.loads(Path(path).expanduser().read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            msg = "unable to load connection file"
            raise FatalSetupError(msg) from exc
        if not isinstance(data, dict):
            msg = "connection file must contain a JSON object"
            raise FatalSetupError(msg)
        return cls.from_mapping(data)


__all__ = ["REQUIRED_FIELDS", "ConnectionInfo"]
