"""Bearer-token authenticators for Discovery connections."""

from __future__ import annotations

import time
from typing import Protocol

import httpx

from wds_toolkit.domain import AuthenticatorKind, ConnectionInfo
from wds_toolkit.exceptions import FatalSetupError

IAM_TOKEN_URL = "https://iam.cloud.ibm.com/identity/token"
IAM_GRANT_TYPE = "urn:ibm:params:oauth:grant-type:apikey"
# Refresh tokens this many seconds before they expire.
EXPIRY_MARGIN_SECONDS = 60.0


class Authenticator(Protocol):
    async def authorization(self, client: httpx.AsyncClient) -> str:
        """Return the ``Authorization`` header value."""


class _CachedTokenAuthenticator:
    def __init__(self) -> None:
        self._token: str | None = None
        self._expires_at = 0.0

    async def authorization(self, client: httpx.AsyncClient) -> str:
        if self._token is None or time.monotonic() >= self._expires_at:
            token, lifetime = await self._fetch(client)
            self._token = token
            self._expires_at = time.monotonic() + max(0.0, lifetime - EXPIRY_MARGIN_SECONDS)
        return f"Bearer {self._token}"

    async def _fetch(self, client: httpx.AsyncClient) -> tuple[str, float]:
        raise NotImplementedError


class IamAuthenticator(_CachedTokenAuthenticator):
    """Exchanges an IBM Cloud API key for an IAM access token."""

    def __init__(self, apikey: str, *, token_url: str = IAM_TOKEN_URL) -> None:
        super().__init__()
        self._apikey = apikey
        self._token_url = token_url

    async def _fetch(self, client: httpx.AsyncClient) -> tuple[str, float]:
        try:
            response = await client.post(
                self._token_url,
                data={"grant_type": IAM_GRANT_TYPE, "apikey": self._apikey},
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            msg = "IAM token request failed"
            raise FatalSetupError(msg) from exc
        payload = response.json()
        return payload["access_token"], float(payload.get("expires_in", 3600))


class CloudPakAuthenticator(_CachedTokenAuthenticator):
    """Obtains a Cloud Pak for Data token with username/password."""

    def __init__(self, cluster_url: str, username: str, password: str) -> None:
        super().__init__()
        self._url = cluster_url.rstrip("/") + "/v1/preauth/validateAuth"
        self._credentials = (username, password)

    async def _fetch(self, client: httpx.AsyncClient) -> tuple[str, float]:
        try:
            response = await client.get(self._url, auth=self._credentials)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            msg = "Cloud Pak for Data token request failed"
            raise FatalSetupError(msg) from exc
        payload = response.json()
        return payload["accessToken"], float(payload.get("expires_in", 3600))


def build_authenticator(info: ConnectionInfo) -> Authenticator:
    if info.authenticator is AuthenticatorKind.IAM and info.apikey:
        return IamAuthenticator(info.apikey)
    if info.authenticator is AuthenticatorKind.CPD and (
        info.cluster_url and info.username and info.password
    ):
        return CloudPakAuthenticator(info.cluster_url, info.username, info.password)
    msg = f"invalid credentials for {info.authenticator} authenticator"
    raise FatalSetupError(msg)


__all__ = [
    "Authenticator",
    "CloudPakAuthenticator",
    "IamAuthenticator",
    "build_authenticator",
]
