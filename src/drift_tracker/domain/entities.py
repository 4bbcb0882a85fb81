from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Any, List, Optional

from .types import HistoryPolicy, PackageManagerKind
from .utils import format_timestamp, parse_timestamp

MERGED_BUMP_FIELD = "mergedBumpPullRequests"

@dataclass(frozen=True)
class RepositoryEntry:
    repository: str
    path: str = ""

    @property
    def line(self) -> str:
        return self.repository if self.path == "" else f"{self.repository}#{self.path}"

@dataclass
class Summary:
    drift: float
    pulse: float
    date: datetime
    merged_bump_pull_requests: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "drift": self.drift,
            "pulse": self.pulse,
            "date": format_timestamp(self.date),
        }
        if self.merged_bump_pull_requests is not None:
            data[MERGED_BUMP_FIELD] = self.merged_bump_pull_requests
        return data

@dataclass(frozen=True)
class IndexEntry:
    repository: str
    file_name: str

    def to_dict(self) -> Dict[str, str]:
        return {"repository": self.repository, "fileName": self.file_name}

@dataclass
class TrackedPackage:
    """Un pacchetto (repository + path) pronto per il calcolo delle metriche."""
    entry: RepositoryEntry
    package_path: Path
    package_manager: PackageManagerKind
    safe_name: str
    summary: Optional[Summary] = None
    files: List[str] = field(default_factory=list)

class History:
    """
    Storico dei Summary di un pacchetto, nell'ordine di scrittura.
    Le voci restano dizionari: i campi sconosciuti vengono preservati.
    """
    def __init__(self, entries: List[Dict[str, Any]]):
        self.entries = entries

    def __len__(self) -> int:
        return len(self.entries)

    def find_by_day(self, day: date) -> Optional[Dict[str, Any]]:
        found = None
        for entry in self.entries:
            moment = parse_timestamp(entry.get("date", "")) if isinstance(entry, dict) else None
            if moment is not None and moment.date() == day:
                found = entry
        return found

    def record(
        self,
        summary: Summary,
        policy: HistoryPolicy = HistoryPolicy.APPEND,
        yesterday: Optional[date] = None,
    ) -> Dict[str, Any]:
        new_entry = summary.to_dict()

        if policy == HistoryPolicy.MERGE_YESTERDAY and summary.merged_bump_pull_requests is not None:
            previous = self.find_by_day(yesterday) if yesterday else None
            if previous is not None:
                previous[MERGED_BUMP_FIELD] = summary.merged_bump_pull_requests
                new_entry.pop(MERGED_BUMP_FIELD, None)

        self.entries.append(new_entry)
        return new_entry
