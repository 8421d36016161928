import os
from pathlib import Path

_DEFAULT_DB_DIR = Path("data")


class Storage:
    def __init__(self, config: dict | None = None) -> None:
        storage_cfg = (config or {}).get("vecdb", {}).get("storage", {})
        self.DB_DIR: str = str(storage_cfg.get("db_dir", os.getenv("VECDB_DB_DIR", str(_DEFAULT_DB_DIR))))
        self.DB_NAME: str = str(storage_cfg.get("db_name", os.getenv("VECDB_DB_NAME", "VectorDB")))
        self.BUSY_TIMEOUT_MS: int = int(storage_cfg.get("busy_timeout_ms", os.getenv("VECDB_BUSY_TIMEOUT_MS", "3000")))
        self.CURSOR_BATCH_SIZE: int = int(
            storage_cfg.get("cursor_batch_size", os.getenv("VECDB_CURSOR_BATCH_SIZE", "256"))
        )

    def db_path(self) -> str:
        """Resolve the SQLite file backing every collection."""
        return str(Path(self.DB_DIR) / f"{self.DB_NAME}.sqlite3")
