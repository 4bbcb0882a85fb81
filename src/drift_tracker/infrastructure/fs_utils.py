import json
import os
import tempfile
from dataclasses import dataclass
from typing import Any

@dataclass
class Paths:
    data_dir: str

    @property
    def base_dir(self) -> str:
        os.makedirs(self.data_dir, exist_ok=True)
        return self.data_dir

    @staticmethod
    def history_file_name(safe_name: str) -> str:
        return f"history-{safe_name}.json"

    @staticmethod
    def last_run_file_name(safe_name: str) -> str:
        return f"last-run-{safe_name}.json"

    @staticmethod
    def index_file_name(name: str) -> str:
        return f"{name}-index.json"

    def history_path(self, safe_name: str) -> str:
        return os.path.join(self.base_dir, self.history_file_name(safe_name))

    def last_run_path(self, safe_name: str) -> str:
        return os.path.join(self.base_dir, self.last_run_file_name(safe_name))

    def index_path(self, name: str) -> str:
        return os.path.join(self.base_dir, self.index_file_name(name))

def read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)

def write_json_atomic(path: str, data: Any) -> None:
    """Scrive su un file temporaneo nella stessa directory e lo sostituisce con os.replace()."""
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(prefix=f"{os.path.basename(path)}.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, separators=(",", ":"), ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
