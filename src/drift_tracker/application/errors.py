from pathlib import Path
from typing import Mapping, Optional, Sequence

class TrackerError(Exception):
    pass

class ConfigurationError(TrackerError, ValueError):
    pass

class PersistenceError(TrackerError):
    pass

class EntryError(TrackerError):
    """Errore legato a un singolo repository (ed eventualmente a un suo path)."""
    stage = "generic"

    def __init__(self, message: str, repository: str, path: Optional[str] = None):
        super().__init__(message)
        self.repository = repository
        self.path = path

    @property
    def target(self) -> str:
        return self.repository if not self.path else f"{self.repository}#{self.path}"

    def __str__(self) -> str:
        return f"[{self.stage}] {self.target}: {super().__str__()}"

class CloneError(EntryError):
    stage = "clone"

class PackageManagerDetectionError(EntryError):
    stage = "package-manager"

class InstallError(EntryError):
    stage = "install"

class DriftCalculationError(EntryError):
    stage = "drift"

class EnrichmentFetchError(TrackerError):
    pass

class StageError(TrackerError):
    """Uno o più fallimenti raccolti durante una fase concorrente."""
    def __init__(self, stage: str, failures: Sequence[TrackerError]):
        self.stage = stage
        self.failures = list(failures)
        details = "; ".join(str(failure) for failure in self.failures)
        super().__init__(f"Fase '{stage}' fallita per {len(self.failures)} elementi: {details}")

class ProvisioningError(StageError):
    """Clone falliti: `workspaces` contiene i clone riusciti, da rimuovere se richiesto."""
    def __init__(self, failures: Sequence[TrackerError], workspaces: Mapping[str, Path]):
        super().__init__("clone", failures)
        self.workspaces = dict(workspaces)
