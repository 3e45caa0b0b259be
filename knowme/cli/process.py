"""Operator CLI for the document pipeline.

Runs ingestion synchronously in the foreground, using the same component
wiring as the web app, and seeds spaces and share links for local use.

Usage::

    python -m knowme.cli process <document_id>
    python -m knowme.cli retry <document_id>
    python -m knowme.cli reprocess-failed [--space <space_id>]
    python -m knowme.cli create-space --name "Jane Doe" --owner-name Jane
    python -m knowme.cli create-link --space <space_id> [--name "Portfolio"]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from knowme.config.settings import Settings
from knowme.models.document import Document, DocumentStatus
from knowme.models.share_link import ShareLink
from knowme.models.space import Space
from knowme.utils.logging import configure_logging


def _print_document(document: Document | None) -> int:
    if document is None:
        print("Document not found.", file=sys.stderr)
        return 1
    print(f"  Document: {document.id} ({document.filename})")
    print(f"  Status:   {document.status.value}")
    if document.error_message:
        print(f"  Error:    {document.error_message}")
    if document.index_file_id:
        print(f"  File ID:  {document.index_file_id}")
    for warning in document.extraction_warnings:
        print(f"  Warning:  {warning}")
    return 0 if document.status is DocumentStatus.READY else 2


async def _handle_process(args: argparse.Namespace, components: dict[str, Any]) -> int:
    print(f"Processing document: {args.document_id}")
    document = await components["ingestion_service"].process(args.document_id)
    return _print_document(document)


async def _handle_retry(args: argparse.Namespace, components: dict[str, Any]) -> int:
    print(f"Retrying document: {args.document_id}")
    document = await components["ingestion_service"].retry(args.document_id)
    return _print_document(document)


async def _handle_reprocess_failed(args: argparse.Namespace, components: dict[str, Any]) -> int:
    scope = args.space or "all spaces"
    print(f"Reprocessing failed documents in {scope}")
    results = await components["ingestion_service"].reprocess_failed(args.space)
    ready = [doc for doc in results if doc is not None and doc.status is DocumentStatus.READY]
    print(f"  Retried: {len(results)}")
    print(f"  Ready:   {len(ready)}")
    print(f"  Failed:  {len(results) - len(ready)}")
    return 0 if len(ready) == len(results) else 2


async def _handle_create_space(args: argparse.Namespace, components: dict[str, Any]) -> int:
    space = await components["record_store"].create_space(
        Space(
            name=args.name,
            description=args.description,
            owner_name=args.owner_name,
            ai_model=args.model,
        )
    )
    print(f"Created space: {space.id} ({space.name})")
    return 0


async def _handle_create_link(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from knowme.providers.store.sqlite_record_store import generate_token

    store = components["record_store"]
    if await store.get_space(args.space) is None:
        print(f"Space not found: {args.space}", file=sys.stderr)
        return 1
    link = await store.create_share_link(
        ShareLink(space_id=args.space, token=generate_token(), name=args.name)
    )
    print(f"Created link: {link.id}")
    print(f"  Token: {link.token}")
    return 0


_HANDLERS = {
    "process": _handle_process,
    "retry": _handle_retry,
    "reprocess-failed": _handle_reprocess_failed,
    "create-space": _handle_create_space,
    "create-link": _handle_create_link,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    # Deferred so that --help does not build clients.
    from knowme.main import _build_all

    components = _build_all(app_settings)
    await components["record_store"].initialize()
    try:
        return await _HANDLERS[args.command](args, components)
    finally:
        await components["supervisor"].drain(timeout=30.0)
        await components["http_client"].aclose()
        await components["openai_client"].close()
        await components["record_store"].close()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="knowme",
        description="Run the KnowMe document pipeline from the command line.",
    )
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("process", help="Process a document that has not run yet")
    p.add_argument("document_id")

    p = sub.add_parser("retry", help="Re-run a ready or failed document")
    p.add_argument("document_id")

    p = sub.add_parser("reprocess-failed", help="Retry every failed document")
    p.add_argument("--space", default=None, help="Limit to one space id")

    p = sub.add_parser("create-space", help="Create a space")
    p.add_argument("--name", required=True)
    p.add_argument("--description", default=None, help="Owner instructions for the assistant")
    p.add_argument("--owner-name", default=None)
    p.add_argument("--model", default=None, help="Per-space chat model override")

    p = sub.add_parser("create-link", help="Create a share link for a space")
    p.add_argument("--space", required=True)
    p.add_argument("--name", default=None)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse, build components, dispatch, exit with the handler's code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level, app_env=app_settings.app_env)

    sys.exit(asyncio.run(_run(args, app_settings)))


if __name__ == "__main__":
    main()
