import os
import json
import logging
from typing import Any, Dict, List

from ..domain.entities import History, IndexEntry
from ..domain.interfaces import IHistoryRepository
from ..application.errors import PersistenceError
from .fs_utils import Paths, read_json, write_json_atomic

class JsonHistoryRepository(IHistoryRepository):
    """
    Storico, ultimo risultato e indici su file JSON nella directory dati:
    history-<safe>.json, last-run-<safe>.json, history-index.json, last-run-index.json
    """
    def __init__(self, data_dir: str):
        self.paths = Paths(data_dir=data_dir)
        self.logger = logging.getLogger(self.__class__.__name__)

    def load_history(self, safe_name: str) -> History:
        history_path = self.paths.history_path(safe_name)
        try:
            if not os.path.exists(history_path):
                write_json_atomic(history_path, [])
            data = read_json(history_path)
        except (OSError, json.JSONDecodeError) as error:
            raise PersistenceError(f"Impossibile leggere {history_path}: {error}") from error

        # Uno storico illeggibile non va mai sovrascritto.
        if not isinstance(data, list):
            raise PersistenceError(f"{history_path} non contiene una lista JSON")
        return History(entries=data)

    def save_history(self, safe_name: str, history: History) -> str:
        self._write(self.paths.history_path(safe_name), history.entries)
        return self.paths.history_file_name(safe_name)

    def save_last_run(self, safe_name: str, records: List[Dict[str, Any]]) -> str:
        self._write(self.paths.last_run_path(safe_name), records)
        return self.paths.last_run_file_name(safe_name)

    def save_index(self, name: str, entries: List[IndexEntry]) -> str:
        self._write(self.paths.index_path(name), [entry.to_dict() for entry in entries])
        self.logger.info(f"Indice '{name}' aggiornato con {len(entries)} voci.")
        return self.paths.index_file_name(name)

    def _write(self, path: str, data: Any) -> None:
        try:
            write_json_atomic(path, data)
        except (OSError, TypeError, ValueError) as error:
            raise PersistenceError(f"Impossibile scrivere {path}: {error}") from error
