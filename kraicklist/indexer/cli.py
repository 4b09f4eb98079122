"""
CLI entry point for the indexer and search services.
"""

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from ..utils.logging import setup_logging
from .config import Settings, load_settings
from .engine_client import SearchEngineClient
from .exceptions import IndexerException
from .initialization import provision


async def health_check(settings: Settings) -> bool:
    """Perform health check on the search engine."""
    print("Performing health checks...")

    async with SearchEngineClient(settings.to_engine_config()) as client:
        if not await client.health_check():
            print("❌ Search engine not accessible")
            return False
    print("✅ Search engine accessible")
    return True


async def run_provisioning(settings: Settings) -> int:
    """Reset the collection, import the bulk source and seed synonyms."""
    async with SearchEngineClient(settings.to_engine_config()) as client:
        try:
            result = await provision(client, settings)
        except IndexerException as e:
            logging.error(f"Provisioning failed: {e}")
            return 1

    report = result.import_report
    print(f"Provisioning finished: {result.state.value}")
    print(f"  Documents loaded: {result.documents_loaded} ({result.lines_skipped} lines skipped)")
    if report:
        print(f"  Imported: {report.succeeded} succeeded, {report.failed} failed in {report.batches} batches")
        print(f"  Documents in collection: {report.num_documents}")
    print(f"  Synonym rules: {len(result.synonyms)}")
    return 0


def show_config(settings: Settings) -> None:
    """Show configuration (without sensitive data)."""
    print("KraickList Configuration:")
    print(f"  Search engine: {settings.search_engine_api_url}")
    print(f"  Collection: {settings.search_engine_collection_name}")
    print(f"  Data file: {settings.data_file}")
    print(f"  Batch size: {settings.import_batch_size}")
    print(f"  Max import attempts: {settings.import_max_attempts}")
    print(f"  Embedding model: {settings.embedding_model} from {settings.embedding_fields}")
    print(f"  Synonyms file: {settings.synonyms_file or '(built-in rules)'}")
    print(f"  Port: {settings.port}")


def serve(settings: Settings) -> None:
    """Provision, then serve the search API."""
    import uvicorn

    from ..backend.server import create_app

    print(f"Server is listening on {settings.port}")
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port, log_config=None)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="KraickList search indexer")

    parser.add_argument("command", choices=["provision", "serve", "health", "config"], help="Command to execute")

    parser.add_argument(
        "--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level"
    )

    parser.add_argument("--json-logs", action="store_true", help="Output logs in JSON format")

    parser.add_argument("--data-file", help="Override DATA_FILE")

    args = parser.parse_args()

    try:
        overrides = {}
        if args.data_file:
            overrides["data_file"] = args.data_file
        if args.log_level:
            overrides["log_level"] = args.log_level
        if args.json_logs:
            overrides["json_logs"] = True
        settings = load_settings(**overrides)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    setup_logging(settings.log_level, settings.json_logs)

    if args.command == "config":
        show_config(settings)

    elif args.command == "health":
        success = asyncio.run(health_check(settings))
        sys.exit(0 if success else 1)

    elif args.command == "provision":
        sys.exit(asyncio.run(run_provisioning(settings)))

    elif args.command == "serve":
        serve(settings)


if __name__ == "__main__":
    main()
