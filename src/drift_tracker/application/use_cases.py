import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

from .interfaces import ITrackingUseCase
from .errors import (
    CloneError,
    DriftCalculationError,
    EnrichmentFetchError,
    ProvisioningError,
    StageError,
    TrackerError,
)
from ..domain.entities import IndexEntry, RepositoryEntry, TrackedPackage
from ..domain.interfaces import (
    IBumpPullRequestFetcher,
    IDependencyInstaller,
    IDriftCalculator,
    IHistoryRepository,
    IPackageManagerDetector,
    IWorkspaceProvisioner,
)
from ..domain import services as domain_services
from ..domain.types import HistoryPolicy

class DriftTrackingService(ITrackingUseCase):
    def __init__(
        self,
        provisioner: IWorkspaceProvisioner,
        detector: IPackageManagerDetector,
        installer: IDependencyInstaller,
        calculator: IDriftCalculator,
        history_repo: IHistoryRepository,
        fetcher: Optional[IBumpPullRequestFetcher] = None,
        policy: HistoryPolicy = HistoryPolicy.APPEND,
        cleanup_workspaces: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
    ):
        self.provisioner = provisioner
        self.detector = detector
        self.installer = installer
        self.calculator = calculator
        self.history_repo = history_repo
        self.fetcher = fetcher
        self.policy = policy
        self.cleanup_workspaces = cleanup_workspaces
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logger or logging.getLogger(__name__)

    async def provision_workspaces(self, entries: Sequence[RepositoryEntry]) -> Dict[str, Path]:
        return await self.provisioner.provision(entries)

    async def prepare_packages(self, entries: Sequence[RepositoryEntry], workspaces: Dict[str, Path]) -> List[TrackedPackage]:
        results = await asyncio.gather(
            *(self._prepare_package(entry, workspaces) for entry in entries),
            return_exceptions=True,
        )

        packages: List[TrackedPackage] = []
        failures: List[TrackerError] = []
        for result in results:
            if isinstance(result, TrackerError):
                self.logger.error(f"Preparazione fallita: {result}")
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                packages.append(result)

        if failures:
            raise StageError("install", failures)
        return packages

    async def _prepare_package(self, entry: RepositoryEntry, workspaces: Dict[str, Path]) -> TrackedPackage:
        workspace_root = workspaces.get(entry.repository)
        if workspace_root is None:
            raise CloneError("workspace non disponibile", entry.repository)

        package_path = workspace_root / entry.path if entry.path else workspace_root
        package_manager = await self.detector.detect(entry, package_path, workspace_root)
        self.logger.info(f"{entry.line}: package manager {package_manager.value}")

        await self.installer.install(entry, package_path, package_manager)
        self.logger.info(f"{entry.line}: dipendenze installate")

        return TrackedPackage(
            entry=entry,
            package_path=package_path,
            package_manager=package_manager,
            safe_name=domain_services.get_safe_repository_name(entry.repository, entry.path),
        )

    async def track_packages(self, packages: Sequence[TrackedPackage]) -> List[TrackedPackage]:
        # Sequenziale, nell'ordine della configurazione: le scritture su storico e indici non sono concorrenti.
        for package in packages:
            await self._track_package(package)
        return list(packages)

    async def _track_package(self, package: TrackedPackage) -> None:
        entry = package.entry
        try:
            records = await self.calculator.calculate(package.package_path, package.package_manager)
        except DriftCalculationError as error:
            raise DriftCalculationError(error.args[0], entry.repository, entry.path) from error

        now = self.clock()
        summary = domain_services.create_summary(records, now=now)
        summary.merged_bump_pull_requests = self._fetch_merged_bump_pull_requests(entry, now)

        history = self.history_repo.load_history(package.safe_name)
        history.record(summary, self.policy, domain_services.get_yesterday(now.date()))
        history_file = self.history_repo.save_history(package.safe_name, history)
        last_run_file = self.history_repo.save_last_run(package.safe_name, records)

        package.summary = summary
        package.files = [history_file, last_run_file]
        self.logger.info(
            f"{entry.line}: drift={summary.drift:.2f}, pulse={summary.pulse:.2f}, "
            f"dipendenze={len(records)}, storico={len(history)} voci"
        )

    def _fetch_merged_bump_pull_requests(self, entry: RepositoryEntry, now: datetime) -> Optional[int]:
        if self.fetcher is None:
            return None

        github_name = domain_services.get_github_repository_name(entry.repository)
        if github_name is None:
            self.logger.info(f"{entry.line}: repository non riconducibile a owner/name, PR di bump non conteggiate.")
            return None

        query = domain_services.get_query_for_merged_bump_pull_requests(github_name, entry.path, today=now.date())
        try:
            return self.fetcher.count(query)
        except EnrichmentFetchError as error:
            self.logger.warning(f"{entry.line}: conteggio PR di bump non disponibile: {error}")
            return None

    def save_indexes(self, packages: Sequence[TrackedPackage]) -> List[str]:
        history_index = [IndexEntry(package.safe_name, package.files[0]) for package in packages]
        last_run_index = [IndexEntry(package.safe_name, package.files[1]) for package in packages]
        index_files = [
            self.history_repo.save_index("history", history_index),
            self.history_repo.save_index("last-run", last_run_index),
        ]
        self.logger.info(f"Indici scritti: {', '.join(index_files)}")
        return index_files

    async def run(self, entries: Sequence[RepositoryEntry]) -> List[TrackedPackage]:
        self.logger.info(f"Avvio tracciamento di {len(entries)} pacchetti.")
        try:
            workspaces = await self.provision_workspaces(entries)
        except ProvisioningError as error:
            if self.cleanup_workspaces:
                self.provisioner.cleanup(error.workspaces)
            raise

        try:
            packages = await self.prepare_packages(entries, workspaces)
            tracked = await self.track_packages(packages)
            self.save_indexes(tracked)
        finally:
            if self.cleanup_workspaces:
                self.provisioner.cleanup(workspaces)

        self.logger.info(f"Tracciamento completato: {len(tracked)} pacchetti aggiornati.")
        return tracked
