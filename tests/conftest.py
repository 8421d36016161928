import os, sys
import tempfile
from pathlib import Path

# Add src/ to sys.path so tests run without an editable install
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

# Keep any default-path database out of the working tree
os.environ.setdefault("VECDB_DB_DIR", tempfile.mkdtemp(prefix="vecdb-tests-"))
os.environ.setdefault("VECDB_CONFIG", str(Path(tempfile.gettempdir()) / "vecdb-missing-config.toml"))
