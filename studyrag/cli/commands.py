"""Standalone CLI for managing the studyrag document store.

Usage::

    python -m studyrag.cli ingest notes/lecture-01.pdf --provider ollama

    python -m studyrag.cli query "What is a cosine similarity?" --max-chunks 3

    python -m studyrag.cli list

    python -m studyrag.cli delete 4

    python -m studyrag.cli usage 4

Configuration (API keys, database paths, chunk sizes) comes from the same
environment variables and ``.env`` file as the web server.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from studyrag.config.settings import Settings
from studyrag.models.job import JobState
from studyrag.providers.embedding.registry import resolve_provider
from studyrag.utils.errors import StudyRagError
from studyrag.utils.logging import configure_logging


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ingest one file and wait for the background run to finish."""
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: no such file: {path}", file=sys.stderr)
        return 1

    app_settings: Settings = components["settings"]
    provider = resolve_provider(
        components["embedding_providers"], args.provider, app_settings.default_embedding_provider
    )
    service = components["ingestion_service"]

    print(f"Ingesting {path.name} with {provider.get_provider_name()}")
    ticket = await service.ingest(path.read_bytes(), path.name, provider)
    job = await service.wait(ticket.upload_id)

    if job is None or job.state != JobState.COMPLETED:
        error = job.error if job is not None else "job record not found"
        print(f"\nIngestion failed: {error}", file=sys.stderr)
        return 1

    print("\nIngestion complete:")
    print(f"  Document ID:    {ticket.document_id}")
    print(f"  Title:          {ticket.title}")
    print(f"  Chunks created: {job.chunks_processed}")
    return 0


async def _handle_query(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Print the context assembled for a query."""
    app_settings: Settings = components["settings"]
    provider = resolve_provider(
        components["embedding_providers"], args.provider, app_settings.default_embedding_provider
    )
    result = await components["retrieval_service"].retrieve(
        args.text,
        provider,
        max_chunks=args.max_chunks,
        similarity_threshold=args.threshold,
    )

    if not result.chunks:
        print("No chunks stored yet.")
        return 0

    if result.used_fallback:
        print("No chunk met the similarity threshold; showing the closest matches.\n")
    for rank, scored in enumerate(result.chunks, start=1):
        chunk = scored.chunk
        print(
            f"[Source {rank}] similarity={scored.similarity:.3f} "
            f"document={chunk.document_id} chunk={chunk.chunk_index}"
        )
    print()
    print(result.context)
    return 0


async def _handle_list(components: dict[str, Any]) -> int:
    """List stored documents, newest first."""
    documents = await components["chunk_store"].list_documents()
    if not documents:
        print("No documents stored.")
        return 0

    print(f"{'ID':>5}  {'Chunks':>6}  {'Created':<20}  Title")
    print("-" * 60)
    for doc in documents:
        created = doc.created_at.strftime("%Y-%m-%d %H:%M:%S")
        print(f"{doc.id:>5}  {doc.chunk_count:>6}  {created:<20}  {doc.title} ({doc.original_name})")
    return 0


async def _handle_delete(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Delete a document and its chunks."""
    await components["chunk_store"].delete_document(args.document_id)
    print(f"Deleted document {args.document_id}.")
    return 0


async def _handle_usage(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Print the usage log of a document."""
    entries = await components["usage_log"].query(args.document_id)
    if not entries:
        print(f"No usage recorded for document {args.document_id}.")
        return 0

    for entry in entries:
        indices = ", ".join(str(c.chunk_index) for c in entry.chunks)
        print(f"#{entry.id}  {entry.timestamp.isoformat()}  chunks=[{indices}]")
        print(f"    {entry.response[:200]}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the studyrag CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m studyrag.cli",
        description="Ingest, query and manage the studyrag document store.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    ingest_parser = subparsers.add_parser("ingest", help="Ingest a PDF, .txt or .md file")
    ingest_parser.add_argument("file", help="Path to the file")
    ingest_parser.add_argument("--provider", default=None, help="Embedding provider (openai|ollama)")

    query_parser = subparsers.add_parser("query", help="Retrieve chunks relevant to a query")
    query_parser.add_argument("text", help="Query text")
    query_parser.add_argument("--max-chunks", type=int, default=None, dest="max_chunks")
    query_parser.add_argument("--threshold", type=float, default=None, help="Minimum similarity")
    query_parser.add_argument("--provider", default=None, help="Embedding provider (openai|ollama)")

    subparsers.add_parser("list", help="List stored documents")

    delete_parser = subparsers.add_parser("delete", help="Delete a document and its chunks")
    delete_parser.add_argument("document_id", type=int)

    usage_parser = subparsers.add_parser("usage", help="Show the usage log of a document")
    usage_parser.add_argument("document_id", type=int)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _dispatch(args: argparse.Namespace, app_settings: Settings) -> int:
    # Deferred so --help does not build providers.
    from studyrag.main import build_components, close_components, initialize_components

    components = build_components(app_settings)
    await initialize_components(components)
    try:
        if args.command == "ingest":
            return await _handle_ingest(args, components)
        if args.command == "query":
            return await _handle_query(args, components)
        if args.command == "list":
            return await _handle_list(components)
        if args.command == "delete":
            return await _handle_delete(args, components)
        return await _handle_usage(args, components)
    finally:
        await close_components(components)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.  Returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level)

    try:
        return asyncio.run(_dispatch(args, app_settings))
    except StudyRagError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
