from __future__ import annotations

from pathlib import Path

from reqprof.storage.duckdb_store import Storage

DEFAULT_DB_PATH = Path(".reqprof/reqprof.duckdb")


def default_storage() -> Storage:
    return Storage(DEFAULT_DB_PATH)


__all__ = ["DEFAULT_DB_PATH", "Storage", "default_storage"]
