"""Typer CLI exposing every maintenance operation."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from wds_toolkit import operations as ops
from wds_toolkit.client import DiscoveryClient
from wds_toolkit.domain import ConnectionInfo
from wds_toolkit.exceptions import ToolkitError
from wds_toolkit.runtime import Outcome, RunContext

from .deps import configure_logging, get_settings, open_client

Operation = Callable[[DiscoveryClient, RunContext], Awaitable[Outcome]]
Renderer = Callable[[Outcome], None]

PRODUCTION_PROMPT = "The specified connection is marked as production. Do you want to continue?"

app = typer.Typer(help="Watson Discovery collection maintenance toolkit")
console = Console()


def _connection() -> Any:
    return typer.Option(None, "--connection", "-c", help="WDS connection info JSON")


def _dry_run() -> Any:
    return typer.Option(False, "--dry-run", "-z", help="Log mutations instead of executing them")


def _parallel_limit() -> Any:
    return typer.Option(None, "--parallel-limit", "-p", min=1, help="Parallel operations")


def _chunk_size() -> Any:
    return typer.Option(None, "--chunk-size", min=1, help="Batch size for document retrieval")


def _filter(text: str = "Optionally apply a filter") -> Any:
    return typer.Option("", "--filter", "-f", help=text)


def _yes() -> Any:
    return typer.Option(False, "--yes", "-y", help="Skip the production connection prompt")


def _verbose() -> Any:
    return typer.Option(False, "--verbose", help="Enable debug logging")


def _load_connection(path: Path | None) -> ConnectionInfo:
    if path is None:
        typer.echo("a connection file is required (--connection or WDS_CONNECTION)", err=True)
        raise typer.Exit(code=1)
    try:
        return ConnectionInfo.from_path(path)
    except ToolkitError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _print_summary(outcome: Outcome, ctx: RunContext) -> None:
    typer.echo("")
    if ctx.dry_run:
        typer.echo(f"dry run complete. {outcome.successes} operations would have been executed")
    else:
        typer.echo(
            f"complete. {outcome.successes} successes, "
            f"{outcome.skipped} skipped, {outcome.failures} failures."
        )


def _execute(
    operation: Operation,
    *,
    connection: Path | None,
    dry_run: bool = False,
    parallel_limit: int | None = None,
    chunk_size: int | None = None,
    yes: bool = False,
    verbose: bool = False,
    render: Renderer | None = None,
) -> Outcome:
    """Resolve settings and connection, run ``operation`` and print the summary."""

    settings = get_settings()
    configure_logging(settings, verbose=verbose)
    ctx = settings.run_context(
        dry_run=True if dry_run else None,
        parallel_limit=parallel_limit,
        chunk_size=chunk_size,
    )
    info = _load_connection(connection or settings.connection_path)
    if info.production and not yes:
        if not typer.confirm(PRODUCTION_PROMPT, default=False):
            typer.echo("exiting")
            raise typer.Exit(code=0)
    if ctx.dry_run:
        typer.echo("executing as dry run. no data will be changed")

    async def _run() -> Outcome:
        client = open_client(info, settings)
        try:
            return await operation(client, ctx)
        finally:
            await client.aclose()

    try:
        outcome = asyncio.run(_run())
    except (ToolkitError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    if render is not None:
        render(outcome)
    _print_summary(outcome, ctx)
    return outcome


def _render_payload(out: Path | None) -> Renderer:
    def _render(outcome: Outcome) -> None:
        if out is None and outcome.data:
            console.print_json(data=outcome.data[0], default=str)

    return _render


@app.command("show-settings")
def show_settings() -> None:
    """Print the resolved application settings."""

    settings = get_settings()
    typer.echo("Environment:\t" + settings.environment)
    typer.echo("Connection:\t" + str(settings.connection_path or "-"))
    typer.echo(f"Parallel Limit:\t{settings.parallel_limit}")
    typer.echo(f"Chunk Size:\t{settings.chunk_size}")
    typer.echo(f"Retry:\t\t{settings.retry_attempts} x {settings.retry_interval_ms}ms")
    typer.echo(f"Timeout:\t{settings.request_timeout}s")
    typer.echo(f"Dry Run:\t{settings.dry_run}")


@app.command("backup-documents-as-json")
def backup_documents_as_json(
    documents_path: Path = typer.Option(..., "--documents-path", "-d", help="Empty or new directory"),
    connection: Path | None = _connection(),
    filter: str = _filter(),
    chunk_size: int | None = _chunk_size(),
    parallel_limit: int | None = _parallel_limit(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Write every matching document to <documents-path>/<id>.json."""

    _execute(
        lambda client, ctx: ops.backup_documents_as_json(
            client, ctx, documents_path, filter=filter, chunk_size=chunk_size
        ),
        connection=connection,
        dry_run=dry_run,
        parallel_limit=parallel_limit,
        chunk_size=chunk_size,
        yes=yes,
        verbose=verbose,
    )


@app.command("backup-file-metadata")
def backup_file_metadata(
    out: Path = typer.Option(..., "--out", "-o", help="Write metadata mapping to this file"),
    connection: Path | None = _connection(),
    filter: str = _filter(),
    chunk_size: int | None = _chunk_size(),
    parallel_limit: int | None = _parallel_limit(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Save filename to id/metadata mappings for re-uploading original files."""

    _execute(
        lambda client, ctx: ops.backup_file_metadata(
            client, ctx, out, filter=filter, chunk_size=chunk_size
        ),
        connection=connection,
        dry_run=dry_run,
        parallel_limit=parallel_limit,
        chunk_size=chunk_size,
        yes=yes,
        verbose=verbose,
    )


@app.command("backup-training-data")
def backup_training_data(
    out: Path = typer.Option(..., "--out", "-o", help="Write training data to this file"),
    connection: Path | None = _connection(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Download the collection's training data."""

    _execute(
        lambda client, ctx: ops.backup_training_data(client, ctx, out),
        connection=connection,
        dry_run=dry_run,
        yes=yes,
        verbose=verbose,
    )


@app.command("delete-document")
def delete_document(
    document_id: str = typer.Option(..., "--document-id", "-d", help="Document to delete"),
    connection: Path | None = _connection(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Delete a single document by id."""

    _execute(
        lambda client, ctx: ops.delete_document(client, ctx, document_id),
        connection=connection,
        dry_run=dry_run,
        yes=yes,
        verbose=verbose,
    )


@app.command("delete-documents-by-filter")
def delete_documents_by_filter(
    documents_path: Path = typer.Option(
        ..., "--documents-path", "-d", help="Back up deleted documents to this directory"
    ),
    connection: Path | None = _connection(),
    filter: str = _filter("Filter to apply before deleting documents; empty affects every document"),
    chunk_size: int | None = _chunk_size(),
    parallel_limit: int | None = _parallel_limit(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Back up and then delete every matching document."""

    _execute(
        lambda client, ctx: ops.delete_documents_by_filter(
            client, ctx, documents_path, filter=filter, chunk_size=chunk_size
        ),
        connection=connection,
        dry_run=dry_run,
        parallel_limit=parallel_limit,
        chunk_size=chunk_size,
        yes=yes,
        verbose=verbose,
    )


@app.command("delete-training-data")
def delete_training_data(
    out: Path = typer.Option(..., "--out", "-o", help="Write training data to this file"),
    connection: Path | None = _connection(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Back up and then delete all training data."""

    _execute(
        lambda client, ctx: ops.delete_training_data(client, ctx, out),
        connection=connection,
        dry_run=dry_run,
        yes=yes,
        verbose=verbose,
    )


@app.command("get-collection-information")
def get_collection_information(
    out: Path | None = typer.Option(None, "--out", "-o", help="Write collection info to this file"),
    connection: Path | None = _connection(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Show collection details and document counts."""

    _execute(
        lambda client, ctx: ops.get_collection_information(client, ctx, out=out),
        connection=connection,
        dry_run=dry_run,
        yes=yes,
        verbose=verbose,
        render=_render_payload(out),
    )


@app.command("get-collection-notices")
def get_collection_notices(
    out: Path | None = typer.Option(None, "--out", "-o", help="Write notices to this file"),
    connection: Path | None = _connection(),
    filter: str = _filter("Apply a filter to the notices query"),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Retrieve ingestion and training notices."""

    _execute(
        lambda client, ctx: ops.get_collection_notices(client, ctx, filter=filter, out=out),
        connection=connection,
        dry_run=dry_run,
        yes=yes,
        verbose=verbose,
        render=_render_payload(out),
    )


@app.command("get-document-id-field-mapping")
def get_document_id_field_mapping(
    out: Path | None = typer.Option(None, "--out", "-o", help="Write the mapping to this file"),
    mapped_fields: str = typer.Option(
        "title", "--mapped-fields", "-m", help="Document fields to map id to, comma separated"
    ),
    id_field: str = typer.Option(
        "", "--id-field", "-i", help="Field to use as id; empty uses id or document_id"
    ),
    connection: Path | None = _connection(),
    filter: str = _filter(),
    chunk_size: int | None = _chunk_size(),
    parallel_limit: int | None = _parallel_limit(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Map every document id to one or more field values."""

    _execute(
        lambda client, ctx: ops.get_document_id_field_mapping(
            client,
            ctx,
            mapped_fields=mapped_fields,
            id_field=id_field or None,
            filter=filter,
            chunk_size=chunk_size,
            out=out,
        ),
        connection=connection,
        dry_run=dry_run,
        parallel_limit=parallel_limit,
        chunk_size=chunk_size,
        yes=yes,
        verbose=verbose,
        render=_render_payload(out),
    )


@app.command("list-training-data-containing-document")
def list_training_data_containing_document(
    document_id: str = typer.Option(..., "--document-id", "-d", help="Document id to look for"),
    report: Path | None = typer.Option(
        None, "--report", "-r", help="Write affected training data to this file"
    ),
    include_segments: bool = typer.Option(
        True, "--include-segments/--exact", help="Also match split segments of the document"
    ),
    connection: Path | None = _connection(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """List training examples that reference a document."""

    def _render(outcome: Outcome) -> None:
        matches = outcome.data[0] if outcome.data else []
        console.print_json(data=matches)
        typer.echo("")
        typer.echo(f"training queries containing document: {len({m['query_id'] for m in matches})}")
        typer.echo(f"matched examples in training data: {len(matches)}")

    _execute(
        lambda client, ctx: ops.list_training_data_containing_document(
            client, ctx, document_id, include_segments=include_segments, report=report
        ),
        connection=connection,
        dry_run=dry_run,
        yes=yes,
        verbose=verbose,
        render=_render,
    )


@app.command("query-collection")
def query_collection(
    query: str = typer.Option("", "--query", "-q", help="Query to apply"),
    nlq: bool = typer.Option(
        True, "--nlq/--dql", help="Treat the query as natural language or as a query language string"
    ),
    return_fields: str | None = typer.Option(None, "--return", "-r", help="Fields to return"),
    extra: list[str] = typer.Option(
        [], "--extra", "-x", help="Extra query parameter as key:value; repeatable"
    ),
    out: Path | None = typer.Option(None, "--out", "-o", help="Write the response to this file"),
    connection: Path | None = _connection(),
    filter: str = _filter(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Run one query against the collection."""

    _execute(
        lambda client, ctx: ops.query_collection(
            client,
            ctx,
            query=query or None,
            natural_language=nlq,
            filter=filter,
            return_fields=return_fields,
            extra_params=extra,
            out=out,
        ),
        connection=connection,
        dry_run=dry_run,
        yes=yes,
        verbose=verbose,
        render=_render_payload(out),
    )


@app.command("remove-all-failed-examples-from-training-data")
def remove_all_failed_examples_from_training_data(
    out: Path = typer.Option(..., "--out", "-o", help="Write backup training data to this file"),
    connection: Path | None = _connection(),
    parallel_limit: int | None = _parallel_limit(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Remove training examples whose documents no longer exist."""

    _execute(
        lambda client, ctx: ops.remove_all_failed_examples_from_training_data(client, ctx, out),
        connection=connection,
        dry_run=dry_run,
        parallel_limit=parallel_limit,
        yes=yes,
        verbose=verbose,
    )


@app.command("remove-document-from-all-training-data")
def remove_document_from_all_training_data(
    document_id: str = typer.Option(..., "--document-id", "-d", help="Document id to remove"),
    out: Path | None = typer.Option(
        None, "--out", "-o", help="Write backup training data to this file"
    ),
    report: Path | None = typer.Option(
        None, "--report", "-r", help="Write affected training data to this file"
    ),
    include_segments: bool = typer.Option(
        True, "--include-segments/--exact", help="Also match split segments of the document"
    ),
    connection: Path | None = _connection(),
    parallel_limit: int | None = _parallel_limit(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Remove a document from every training query that references it."""

    _execute(
        lambda client, ctx: ops.remove_document_from_all_training_data(
            client,
            ctx,
            document_id,
            include_segments=include_segments,
            out=out,
            report=report,
        ),
        connection=connection,
        dry_run=dry_run,
        parallel_limit=parallel_limit,
        yes=yes,
        verbose=verbose,
    )


@app.command("remove-document-from-query")
def remove_document_from_query(
    document_id: str = typer.Option(..., "--document-id", "-d", help="Document id to remove"),
    query_id: str = typer.Option(..., "--query-id", "-q", help="Targeted query id"),
    include_segments: bool = typer.Option(
        True, "--include-segments/--exact", help="Also match split segments of the document"
    ),
    connection: Path | None = _connection(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Remove a document from the examples of one training query."""

    _execute(
        lambda client, ctx: ops.remove_document_from_query(
            client, ctx, document_id, query_id, include_segments=include_segments
        ),
        connection=connection,
        dry_run=dry_run,
        yes=yes,
        verbose=verbose,
    )


@app.command("replay-training-data")
def replay_training_data(
    training: Path = typer.Option(..., "--training", "-t", help="Training data backup file"),
    connection: Path | None = _connection(),
    parallel_limit: int | None = _parallel_limit(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Recreate training queries from a backup; existing queries are skipped."""

    _execute(
        lambda client, ctx: ops.replay_training_data(client, ctx, training),
        connection=connection,
        dry_run=dry_run,
        parallel_limit=parallel_limit,
        yes=yes,
        verbose=verbose,
    )


@app.command("upload-file")
def upload_file(
    file: Path = typer.Option(..., "--file", "-f", help="File to upload"),
    document_id: str | None = typer.Option(
        None, "--id", "-i", help="Update this document instead of inserting"
    ),
    metadata: str | None = typer.Option(None, "--metadata", "-m", help="Metadata as a JSON object"),
    connection: Path | None = _connection(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Insert or update a single document from a local file."""

    try:
        parsed = json.loads(metadata) if metadata else {}
    except json.JSONDecodeError as exc:
        raise typer.BadParameter("metadata must be valid JSON") from exc

    _execute(
        lambda client, ctx: ops.upload_file(
            client, ctx, file, document_id=document_id, metadata=parsed
        ),
        connection=connection,
        dry_run=dry_run,
        yes=yes,
        verbose=verbose,
    )


@app.command("upload-files-in-directory")
def upload_files_in_directory(
    documents_path: Path = typer.Option(..., "--documents-path", "-d", help="Directory to upload"),
    mapping_file: Path | None = typer.Option(
        None, "--mapping-file", "-m", help="Mapping file written by backup-file-metadata"
    ),
    connection: Path | None = _connection(),
    parallel_limit: int | None = _parallel_limit(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Upload every file in a directory."""

    _execute(
        lambda client, ctx: ops.upload_files_in_directory(
            client, ctx, documents_path, mapping_file=mapping_file
        ),
        connection=connection,
        dry_run=dry_run,
        parallel_limit=parallel_limit,
        yes=yes,
        verbose=verbose,
    )


@app.command("upload-json-backups")
def upload_json_backups(
    documents_path: Path = typer.Option(
        ..., "--documents-path", "-d", help="Directory containing JSON documents"
    ),
    id_field: str = typer.Option("id", "--id-field", "-i", help="Id field in each JSON document"),
    connection: Path | None = _connection(),
    parallel_limit: int | None = _parallel_limit(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Re-upload JSON document backups under their original ids."""

    _execute(
        lambda client, ctx: ops.upload_json_backups(client, ctx, documents_path, id_field=id_field),
        connection=connection,
        dry_run=dry_run,
        parallel_limit=parallel_limit,
        yes=yes,
        verbose=verbose,
    )


@app.command("generate-logs-csv-report")
def generate_logs_csv_report(
    out: Path = typer.Option(..., "--out", "-o", help="Path to write the CSV"),
    title_field: str = typer.Option(
        ops.reports.DEFAULT_TITLE_FIELD, "--title-field", "-t", help="Document field used as title"
    ),
    customer_id_only: bool = typer.Option(
        False, "--customer-id-only", help="Only include log entries with a customer id"
    ),
    start: str | None = typer.Option(
        None, "--start", "-s", help="ISO 8601 start timestamp; defaults to 15 days ago"
    ),
    end: str | None = typer.Option(None, "--end", "-e", help="ISO 8601 end timestamp; defaults to now"),
    batch_size: int = typer.Option(15, "--batch-size", min=1, help="Width of each log batch"),
    batch_unit: str = typer.Option("days", "--batch-unit", help="seconds, minutes, hours, days, weeks, months or years"),
    connection: Path | None = _connection(),
    filter: str = _filter("Apply a filter to the logs query"),
    chunk_size: int | None = _chunk_size(),
    parallel_limit: int | None = _parallel_limit(),
    dry_run: bool = _dry_run(),
    yes: bool = _yes(),
    verbose: bool = _verbose(),
) -> None:
    """Summarize query logs into a CSV report."""

    _execute(
        lambda client, ctx: ops.generate_logs_csv_report(
            client,
            ctx,
            out,
            start=start,
            end=end,
            batch_size=batch_size,
            batch_unit=batch_unit,
            filter=filter,
            title_field=title_field,
            customer_id_only=customer_id_only,
            chunk_size=chunk_size,
        ),
        connection=connection,
        dry_run=dry_run,
        parallel_limit=parallel_limit,
        chunk_size=chunk_size,
        yes=yes,
        verbose=verbose,
    )


__all__ = ["app"]
