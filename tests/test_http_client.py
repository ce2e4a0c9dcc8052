from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from wds_toolkit.client import DocumentUpload, HttpDiscoveryClient, IamAuthenticator, QueryParams
from wds_toolkit.client.auth import CloudPakAuthenticator, build_authenticator
from wds_toolkit.domain import ApiVersion, AuthenticatorKind, ConnectionInfo
from wds_toolkit.exceptions import ConflictError, FatalSetupError, TransientRemoteError

INFO = ConnectionInfo.from_mapping(
    {
        "version": "2019-04-30",
        "url": "https://discovery.example.com/instances/abc",
        "environment_id": "env",
        "collection_id": "col",
        "authenticator": "iam",
        "api_version": "v1",
        "apikey": "secret",
    }
)


class StaticAuthenticator:
    async def authorization(self, client: httpx.AsyncClient) -> str:
        return "Bearer test-token"


def _client(handler, info: ConnectionInfo = INFO) -> HttpDiscoveryClient:
    transport = httpx.MockTransport(handler)
    return HttpDiscoveryClient(
        info,
        client=httpx.AsyncClient(transport=transport),
        authenticator=StaticAuthenticator(),
    )


def test_query_sends_version_and_opt_out_header() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"matching_results": 1, "results": [{"id": "d1"}]})

    client = _client(handler)
    params = QueryParams(filter="enriched_text::x", count=10, offset=20, return_fields="title")

    response = asyncio.run(client.query(params))

    assert response["results"] == [{"id": "d1"}]
    request = seen[0]
    assert request.url.path == "/instances/abc/v1/environments/env/collections/col/query"
    assert request.url.params["version"] == "2019-04-30"
    assert request.url.params["return"] == "title"
    assert request.url.params["offset"] == "20"
    assert request.headers["X-Watson-Logging-Opt-Out"] == "true"
    assert request.headers["Authorization"] == "Bearer test-token"


def test_count_reads_matching_results() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["count"] == "0"
        return httpx.Response(200, json={"matching_results": 42, "results": []})

    assert asyncio.run(_client(handler).count("title::a")) == 42


def test_conflict_status_maps_to_conflict_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"error": "query already exists"})

    with pytest.raises(ConflictError) as excinfo:
        asyncio.run(_client(handler).add_training_query({"natural_language_query": "q"}))
    assert excinfo.value.status_code == 409
    assert "query already exists" in str(excinfo.value)


def test_other_statuses_are_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="busy")

    with pytest.raises(TransientRemoteError) as excinfo:
        asyncio.run(_client(handler).list_training_data())
    assert excinfo.value.status_code == 503


def test_transport_errors_are_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientRemoteError):
        asyncio.run(_client(handler).get_collection())


def test_update_document_uploads_multipart_with_metadata() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202, json={"document_id": "d1", "status": "processing"})

    upload = DocumentUpload.from_json({"text": "hello"}, filename="d1.json", metadata={"k": "v"})

    response = asyncio.run(_client(handler).update_document("d1", upload))

    assert response["document_id"] == "d1"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path.endswith("/collections/col/documents/d1")
    body = request.content
    assert b'name="metadata"' in body
    assert json.dumps({"k": "v"}).encode() in body
    assert b"application/json" in body


def test_empty_response_body_is_empty_dict() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    assert asyncio.run(_client(handler).delete_all_training_data()) == {}


def test_iam_token_is_cached() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, json={"access_token": "abc", "expires_in": 3600})

    auth = IamAuthenticator("key", token_url="https://iam.example.com/token")

    async def _run() -> list[str]:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            return [await auth.authorization(http), await auth.authorization(http)]

    assert asyncio.run(_run()) == ["Bearer abc", "Bearer abc"]
    assert calls == 1


def test_iam_failure_is_fatal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"errorMessage": "bad key"})

    auth = IamAuthenticator("key", token_url="https://iam.example.com/token")

    async def _run() -> str:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            return await auth.authorization(http)

    with pytest.raises(FatalSetupError):
        asyncio.run(_run())


def _training_body() -> dict:
    return {"natural_language_query": "how", "examples": [{"document_id": "d1", "relevance": 10}]}


def test_v1_training_query_posts_to_collection() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"query_id": "q1"})

    asyncio.run(_client(handler).add_training_query(_training_body()))

    assert seen[0].method == "POST"
    assert seen[0].url.path == "/instances/abc/v1/environments/env/collections/col/training_data"


def test_v2_training_query_posts_to_project() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"query_id": "q1"})

    v2 = INFO.model_copy(update={"api_version": ApiVersion.V2, "project_id": "proj"})

    asyncio.run(_client(handler, v2).add_training_query(_training_body()))

    request = seen[0]
    assert request.url.path == "/instances/abc/v2/projects/proj/training_data/queries"
    assert request.url.params["version"] == "2019-04-30"
    assert json.loads(request.content)["examples"][0]["document_id"] == "d1"


def test_v2_training_query_defaults_project_to_environment() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={})

    v2 = INFO.model_copy(update={"api_version": ApiVersion.V2})

    asyncio.run(_client(handler, v2).add_training_query(_training_body()))

    assert seen[0].url.path == "/instances/abc/v2/projects/env/training_data/queries"


def test_build_authenticator_matches_kind() -> None:
    cpd = INFO.model_copy(
        update={
            "authenticator": AuthenticatorKind.CPD,
            "cluster_url": "https://cpd.example.com",
            "username": "admin",
            "password": "pw",
        }
    )

    assert isinstance(build_authenticator(INFO), IamAuthenticator)
    assert isinstance(build_authenticator(cpd), CloudPakAuthenticator)


def test_build_authenticator_without_credentials_is_fatal() -> None:
    bare = INFO.model_copy(update={"apikey": None})

    with pytest.raises(FatalSetupError):
        build_authenticator(bare)
