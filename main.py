"""Command-line entry point for the docchat service and its indexing job."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import uvicorn

from docchat.api import create_app
from docchat.completion import ChatCompletionService
from docchat.config import config
from docchat.embeddings import EmbeddingService
from docchat.exceptions import UpstreamError
from docchat.ingestion import IngestionPipeline
from docchat.pipeline import ChatPipeline
from docchat.vector_store import get_vector_store

if TYPE_CHECKING:
    from collections.abc import Sequence
    from logging import Logger


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Build the CLI parser and read command-line arguments."""  # noqa: DOC201
    parser = argparse.ArgumentParser(
        description="Chat with an indexed document over HTTP.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the chat HTTP API.")
    serve.add_argument(
        "--host",
        default=config.HOST,
        help=f"Bind address for the HTTP server (default: {config.HOST}).",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=config.PORT,
        help=f"Port for the HTTP server (default: {config.PORT}).",
    )

    ingest = subparsers.add_parser("ingest", help="Index a document for retrieval.")
    ingest.add_argument(
        "document",
        nargs="?",
        type=Path,
        default=config.DOCUMENT_PATH,
        help=f"PDF or TXT file to index (default: {config.DOCUMENT_PATH}).",
    )
    ingest.add_argument(
        "--chunk-size",
        type=int,
        default=config.CHUNK_SIZE,
        help=f"Maximum characters per chunk (default: {config.CHUNK_SIZE}).",
    )
    ingest.add_argument(
        "--chunk-overlap",
        type=int,
        default=config.CHUNK_OVERLAP,
        help=f"Characters shared by neighbouring chunks (default: {config.CHUNK_OVERLAP}).",
    )
    return parser.parse_args(argv)


def build_pipeline() -> ChatPipeline:
    """Wire the chat pipeline to OpenAI and the on-disk FAISS index."""  # noqa: DOC201
    return ChatPipeline.from_providers(
        embeddings=EmbeddingService(),
        index=get_vector_store(),
        completion=ChatCompletionService(),
        rewrite_completion=ChatCompletionService(
            max_tokens=config.QUERY_REWRITE_MAX_TOKENS,
            temperature=config.QUERY_REWRITE_TEMPERATURE,
        ),
    )


def serve(args: argparse.Namespace, logger: Logger) -> int:
    """Start the HTTP API and block until it stops."""  # noqa: DOC201
    app = create_app(build_pipeline())

    logger.info("Chat API server running on port %s", args.port)
    logger.info("Chat endpoint: POST http://%s:%s/chat", args.host, args.port)
    logger.info("Health check: GET http://%s:%s/health", args.host, args.port)
    logger.info(
        'Usage: POST /chat with {"message": "Your question here", '
        '"sessionId": "optional"}'
    )
    try:
        uvicorn.run(app, host=args.host, port=args.port, log_config=None)
    except KeyboardInterrupt:
        logger.info("docchat stopped by user")
    return 0


def ingest(args: argparse.Namespace, logger: Logger) -> int:
    """Index a document into the FAISS store."""  # noqa: DOC201
    if not args.document.exists():
        logger.error("Document not found: %s", args.document)
        return 1

    pipeline = IngestionPipeline(
        embedding_service=EmbeddingService(),
        vector_store=get_vector_store(),
        chunk_size=args.chunk_size,
        overlap=args.chunk_overlap,
    )
    try:
        count = asyncio.run(pipeline.process_document(args.document))
    except (UpstreamError, ValueError):
        logger.exception("Indexing failed for %s", args.document)
        return 1
    logger.info("Documents indexed successfully (%d chunks)", count)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Validate configuration and dispatch the requested command."""  # noqa: DOC201
    args = parse_args(argv)

    config.setup_logging()
    logger = config.get_logger(__name__)

    try:
        config.validate()
    except ValueError:
        logger.exception("Configuration invalid")
        return 1

    if args.command == "ingest":
        return ingest(args, logger)
    return serve(args, logger)


if __name__ == "__main__":
    sys.exit(main())
