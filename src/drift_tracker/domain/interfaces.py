from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .entities import History, IndexEntry, RepositoryEntry
from .types import PackageManagerKind

@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str

class ICommandRunner(ABC):
    @abstractmethod
    async def run(
        self,
        command: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        pass

class IGitCloner(ABC):
    @abstractmethod
    async def clone(self, repository_url: str, destination: Path) -> None:
        pass

class IWorkspaceProvisioner(ABC):
    @abstractmethod
    async def provision(self, entries: Sequence[RepositoryEntry]) -> Dict[str, Path]:
        pass

    @abstractmethod
    def cleanup(self, workspaces: Mapping[str, Path]) -> None:
        pass

class IPackageManagerDetector(ABC):
    @abstractmethod
    async def detect(self, entry: RepositoryEntry, package_path: Path, workspace_root: Path) -> PackageManagerKind:
        pass

class IDependencyInstaller(ABC):
    @abstractmethod
    async def install(self, entry: RepositoryEntry, package_path: Path, package_manager: PackageManagerKind) -> None:
        pass

class IDriftCalculator(ABC):
    @abstractmethod
    async def calculate(self, package_path: Path, package_manager: PackageManagerKind) -> List[Dict[str, Any]]:
        pass

class IBumpPullRequestFetcher(ABC):
    @abstractmethod
    def count(self, query: str) -> int:
        pass

class IHistoryRepository(ABC):
    @abstractmethod
    def load_history(self, safe_name: str) -> History:
        pass

    @abstractmethod
    def save_history(self, safe_name: str, history: History) -> str:
        pass

    @abstractmethod
    def save_last_run(self, safe_name: str, records: List[Dict[str, Any]]) -> str:
        pass

    @abstractmethod
    def save_index(self, name: str, entries: List[IndexEntry]) -> str:
        pass
