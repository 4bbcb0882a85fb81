from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Sequence

from ..domain.entities import RepositoryEntry, TrackedPackage

class ITrackingUseCase(ABC):
    @abstractmethod
    async def provision_workspaces(self, entries: Sequence[RepositoryEntry]) -> Dict[str, Path]:
        pass

    @abstractmethod
    async def prepare_packages(self, entries: Sequence[RepositoryEntry], workspaces: Dict[str, Path]) -> List[TrackedPackage]:
        pass

    @abstractmethod
    async def track_packages(self, packages: Sequence[TrackedPackage]) -> List[TrackedPackage]:
        pass

    @abstractmethod
    async def run(self, entries: Sequence[RepositoryEntry]) -> List[TrackedPackage]:
        pass
