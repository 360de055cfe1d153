"""Shared setup logic for CLI commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

MARTI_DIR = Path.home() / ".marti"
CONFIG_PATH = MARTI_DIR / "config.yaml"


def load_config(config_file: str | None = None):
    """Load config from the given file, or ~/.marti/config.yaml, and set up logging."""
    from marti.core.config import Config
    from marti.core.utils.logging import setup_logging

    config = Config(config_file=config_file or str(CONFIG_PATH))
    setup_logging(level=config.get("logging.level", "WARNING"), log_file=config.get("logging.file") or None)
    return config


def create_repository(config):
    """Create an EntryRepository over MongoDB. Exits if the config is incomplete."""
    from marti.core.exceptions import ConfigurationError
    from marti.samples.mongo import MongoStoreClient
    from marti.samples.repository import EntryRepository
    from marti.samples.schema import DocumentSchema, StoreSettings

    try:
        settings = StoreSettings.from_config(config)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    return EntryRepository(MongoStoreClient.from_config(config), settings, DocumentSchema.from_config(config))


def echo_entries(entries, schema) -> None:
    """Print entries as a JSON array of their documents."""
    from marti.samples.codec import to_document

    documents = [to_document(entry, schema) for entry in entries]
    click.echo(json.dumps(documents, indent=2, default=str))
