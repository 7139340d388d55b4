"""Entry point for the BookPub ingestion and publishing service."""

import argparse
import logging
import sys
from pathlib import Path

from bookpub.config import AppConfig, load_config
from bookpub.errors import BookPubError
from bookpub.ingestion import ChapterFolderResolver, IngestionReconciler, ZipArchiveImporter
from bookpub.publishing import ArtifactAssembler, PublishCoordinator
from bookpub.storage import SqliteContentStore, TitleRepository, initialize_database

logger = logging.getLogger("bookpub")


def build_reconciler(config: AppConfig, repository: TitleRepository) -> IngestionReconciler:
    resolver = ChapterFolderResolver(repository.store, config.ingestion.chapter_convention)
    return IngestionReconciler(
        repository,
        ZipArchiveImporter(repository, resolver),
        config.ingestion.content_drop_dir,
        extension=config.ingestion.archive_extension,
        invalid_name_policy=config.ingestion.invalid_name_policy,
    )


def build_publisher(config: AppConfig, repository: TitleRepository) -> PublishCoordinator:
    return PublishCoordinator(
        repository,
        ArtifactAssembler(repository.store, config.publishing.artifact_mimetype),
        config.publishing.pickup_dir,
        artifact_extension=config.publishing.artifact_extension,
        temp_dir=config.publishing.temp_dir,
    )


def main(argv: list[str] | None = None) -> int:
    """Run one scan cycle or publish one title."""
    parser = argparse.ArgumentParser(description="BookPub ingestion and publishing")
    parser.add_argument("--config", default="config.yaml", help="Path to the YAML configuration file")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("ingest", help="Run one scan cycle over the content drop directory")
    publish = commands.add_parser("publish", help="Publish a title as EPUB to the pickup directory")
    publish.add_argument("isbn", help="ISBN of the title to publish")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    logging.basicConfig(level=config.logging.level.upper(), format=config.logging.format)

    # Ensure required directories exist
    Path(config.ingestion.content_drop_dir).mkdir(parents=True, exist_ok=True)
    Path(config.publishing.pickup_dir).mkdir(parents=True, exist_ok=True)

    initialize_database(config.storage.sqlite_path)
    store = SqliteContentStore(config.storage.sqlite_path)
    repository = TitleRepository(store, config.ingestion.incoming_folder_path)
    try:
        if args.command == "ingest":
            result = build_reconciler(config, repository).run_scan_cycle()
            return 1 if result.aborted else 0
        return 0 if build_publisher(config, repository).publish(args.isbn) else 1
    except BookPubError as e:
        logger.error("%s (error code %d)", e, e.code)
        return 2
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
