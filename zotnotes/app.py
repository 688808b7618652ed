"""Application bootstrap and context container for zotnotes."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import ZotnotesConfig, load_config
from .services.export import Exporter
from .storage import Storage


@dataclass(slots=True)
class AppContext:
    """Aggregates core services for the CLI and server lifecycle."""

    config: ZotnotesConfig
    storage: Storage
    exporter: Exporter


def open_storage(config: ZotnotesConfig) -> Storage:
    """Open the Zotero database described by ``config``."""

    storage = Storage(
        config.database,
        data_dir=config.zotero_dir,
        base_attachment_dir=config.base_attachment_dir,
    )
    storage.initialize()
    return storage


def bootstrap(config_path: Path | None) -> AppContext:
    """Load configuration and open the Zotero database."""

    # Defer error mapping to the caller, which knows how to present messages.
    config = load_config(config_path)
    storage = open_storage(config)
    return AppContext(config=config, storage=storage, exporter=Exporter(storage))


__all__ = ["AppContext", "bootstrap", "open_storage"]
