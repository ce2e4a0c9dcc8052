"""Read-only collection inspection."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from wds_toolkit import collection
from wds_toolkit.client import DiscoveryClient, QueryParams
from wds_toolkit.runtime import Outcome, RunContext

from .artifacts import write_artifact

logger = logging.getLogger(__name__)


async def get_collection_information(
    client: DiscoveryClient,
    ctx: RunContext,
    *,
    out: Path | None = None,
) -> Outcome:
    outcome = await collection.get_collection_information(client, ctx)
    write_artifact(ctx, outcome.data[0], out)
    return outcome


async def get_collection_notices(
    client: DiscoveryClient,
    ctx: RunContext,
    *,
    filter: str = "",
    out: Path | None = None,
) -> Outcome:
    outcome = await collection.get_notices(client, ctx, filter)
    logger.info("%s notices retrieved", len(outcome.data[0]))
    write_artifact(ctx, outcome.data[0], out)
    return outcome


async def get_document_id_field_mapping(
    client: DiscoveryClient,
    ctx: RunContext,
    *,
    mapped_fields: str,
    id_field: str | None = None,
    filter: str = "",
    chunk_size: int | None = None,
    out: Path | None = None,
) -> Outcome:
    """Map each document id to ``mapped_fields``; unmapped documents are skipped."""

    built = await collection.build_document_field_map(
        client,
        ctx,
        value_fields=mapped_fields,
        id_field=id_field,
        filter=filter,
        chunk_size=chunk_size,
    )
    mapping = built.data[0]
    write_artifact(ctx, mapping, out)
    return Outcome(
        successes=len(mapping),
        skipped=built.skipped + max(built.successes - len(mapping), 0),
        data=[mapping],
    )


def parse_extra_params(values: Iterable[str]) -> dict[str, str]:
    """Turn ``key:value`` strings into query parameters."""

    params: dict[str, str] = {}
    for value in values:
        key, sep, rest = value.partition(":")
        if not sep or not key:
            msg = f"unable to parse extra parameter: {value}"
            raise ValueError(msg)
        params[key] = rest
    return params


async def query_collection(
    client: DiscoveryClient,
    ctx: RunContext,
    *,
    query: str | None = None,
    natural_language: bool = False,
    filter: str = "",
    return_fields: str | None = None,
    extra_params: Iterable[str] = (),
    out: Path | None = None,
) -> Outcome:
    try:
        extra = parse_extra_params(extra_params)
    except ValueError as exc:
        logger.error("%s", exc)
        return Outcome.failure()
    params = QueryParams(
        filter=filter,
        query=None if natural_language else query,
        natural_language_query=query if natural_language else None,
        return_fields=return_fields,
        extra=extra,
    )
    outcome = await collection.query_collection(client, ctx, params)
    write_artifact(ctx, outcome.data[0], out)
    return outcome


__all__ = [
    "get_collection_information",
    "get_collection_notices",
    "get_document_id_field_mapping",
    "parse_extra_params",
    "query_collection",
]
