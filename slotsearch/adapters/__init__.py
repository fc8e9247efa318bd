"""
Adapters layer - Where business data comes from (snapshot files, REST backend).
"""

from pathlib import Path

from ..config import AppConfig
from .http_store import HttpBusinessStore
from .snapshot_store import SnapshotStore


def build_store(config: AppConfig, snapshot_path: Path | None = None):
    """
    Create the store selected by configuration.

    An explicit ``snapshot_path`` always wins and forces the snapshot store.

    Raises:
        ValueError: If the snapshot store is selected without a path
    """
    path = snapshot_path or config.store.snapshot_path
    if snapshot_path is not None or config.store.kind == "snapshot":
        if path is None:
            raise ValueError("No snapshot file configured. Set store.snapshot_path or pass --snapshot.")
        return SnapshotStore.from_file(path, default_timezone=config.timezone)

    return HttpBusinessStore(
        base_url=config.store.base_url,
        api_token=config.store.api_token,
        timeout_seconds=config.store.timeout_seconds,
        default_timezone=config.timezone,
    )


__all__ = ["HttpBusinessStore", "SnapshotStore", "build_store"]
