import json
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

from src.drift_tracker.application.errors import (
    CloneError,
    DriftCalculationError,
    EnrichmentFetchError,
    InstallError,
    PersistenceError,
    ProvisioningError,
    StageError,
)
from src.drift_tracker.application.use_cases import DriftTrackingService
from src.drift_tracker.domain.entities import History, RepositoryEntry, TrackedPackage
from src.drift_tracker.domain.services import parse_file
from src.drift_tracker.domain.types import HistoryPolicy, PackageManagerKind
from src.drift_tracker.infrastructure.json_history_repository import JsonHistoryRepository
from src.drift_tracker.infrastructure.package_managers import PackageManagerDetector
from src.drift_tracker.infrastructure.workspace import WorkspaceProvisioner

PIX = "https://github.com/1024pix/pix.git"
NOW = datetime(2023, 2, 1, 6, 0, tzinfo=timezone.utc)

@pytest.fixture
def mock_deps(tmp_path):
    provisioner = Mock()
    provisioner.provision = AsyncMock(return_value={PIX: tmp_path})
    detector = Mock()
    detector.detect = AsyncMock(return_value=PackageManagerKind.NPM)
    installer = Mock()
    installer.install = AsyncMock(return_value=None)
    calculator = Mock()
    calculator.calculate = AsyncMock(return_value=[{"drift": 1, "pulse": 2}, {"drift": 3}])
    history_repo = Mock()
    history_repo.load_history.side_effect = lambda safe_name: History([])
    history_repo.save_history.side_effect = lambda safe_name, history: f"history-{safe_name}.json"
    history_repo.save_last_run.side_effect = lambda safe_name, records: f"last-run-{safe_name}.json"
    history_repo.save_index.side_effect = lambda name, entries: f"{name}-index.json"
    return provisioner, detector, installer, calculator, history_repo

def _service(mock_deps, **kwargs):
    provisioner, detector, installer, calculator, history_repo = mock_deps
    return DriftTrackingService(
        provisioner, detector, installer, calculator, history_repo, clock=lambda: NOW, **kwargs
    )

class TestDriftTrackingService:
    @pytest.mark.asyncio
    async def test_prepare_packages(self, mock_deps, tmp_path):
        service = _service(mock_deps)
        entries = [RepositoryEntry(PIX, "api"), RepositoryEntry(PIX)]

        packages = await service.prepare_packages(entries, {PIX: tmp_path})

        assert [package.package_path for package in packages] == [tmp_path / "api", tmp_path]
        assert [package.safe_name for package in packages] == [
            "github-com-1024pix-pix-git-api",
            "github-com-1024pix-pix-git",
        ]

    @pytest.mark.asyncio
    async def test_prepare_packages_collects_failures(self, mock_deps, tmp_path):
        _, _, installer, _, _ = mock_deps

        async def fake_install(entry, package_path, package_manager):
            if entry.path != "ok":
                raise InstallError("exit 1", entry.repository, entry.path)

        installer.install.side_effect = fake_install
        service = _service(mock_deps)
        entries = [RepositoryEntry(PIX, "a"), RepositoryEntry(PIX, "ok"), RepositoryEntry(PIX, "b")]

        with pytest.raises(StageError) as exc_info:
            await service.prepare_packages(entries, {PIX: tmp_path})

        assert [failure.path for failure in exc_info.value.failures] == ["a", "b"]
        assert installer.install.call_count == 3

    @pytest.mark.asyncio
    async def test_missing_workspace_is_reported(self, mock_deps):
        service = _service(mock_deps)

        with pytest.raises(StageError) as exc_info:
            await service.prepare_packages([RepositoryEntry("https://host/other.git")], {})
        assert exc_info.value.failures[0].repository == "https://host/other.git"

    @pytest.mark.asyncio
    async def test_track_package_persists_summary(self, mock_deps, tmp_path):
        _, _, _, _, history_repo = mock_deps
        service = _service(mock_deps)
        package = TrackedPackage(RepositoryEntry(PIX, "api"), tmp_path, PackageManagerKind.NPM, "safe")

        await service.track_packages([package])

        history = history_repo.save_history.call_args[0][1]
        assert history.entries == [{"drift": 4, "pulse": 2, "date": "2023-02-01T06:00:00.000Z"}]
        history_repo.save_last_run.assert_called_once_with("safe", [{"drift": 1, "pulse": 2}, {"drift": 3}])
        assert package.files == ["history-safe.json", "last-run-safe.json"]

    @pytest.mark.asyncio
    async def test_enrichment_uses_github_name_and_yesterday(self, mock_deps, tmp_path):
        _, _, _, _, history_repo = mock_deps
        fetcher = Mock()
        fetcher.count.return_value = 5
        service = _service(mock_deps, fetcher=fetcher)
        package = TrackedPackage(RepositoryEntry(PIX, "api"), tmp_path, PackageManagerKind.NPM, "safe")

        await service.track_packages([package])

        query = fetcher.count.call_args[0][0]
        assert 'repo:1024pix/pix is:pr is:merged merged:2023-01-31..2023-01-31 in:title [BUMP] (api)"' in query
        assert package.summary.merged_bump_pull_requests == 5
        assert history_repo.save_history.call_args[0][1].entries[0]["mergedBumpPullRequests"] == 5

    @pytest.mark.asyncio
    async def test_enrichment_failure_does_not_block_summary(self, mock_deps, tmp_path):
        _, _, _, _, history_repo = mock_deps
        fetcher = Mock()
        fetcher.count.side_effect = EnrichmentFetchError("401 Unauthorized")
        service = _service(mock_deps, fetcher=fetcher)
        package = TrackedPackage(RepositoryEntry(PIX), tmp_path, PackageManagerKind.NPM, "safe")

        await service.track_packages([package])

        entry = history_repo.save_history.call_args[0][1].entries[0]
        assert "mergedBumpPullRequests" not in entry
        assert entry["drift"] == 4

    @pytest.mark.asyncio
    async def test_enrichment_skipped_for_non_github_hosts(self, mock_deps, tmp_path):
        _, _, _, _, history_repo = mock_deps
        fetcher = Mock()
        service = _service(mock_deps, fetcher=fetcher)
        entry = RepositoryEntry("https://gitlab.com/1024pix/pix.git", "api")
        package = TrackedPackage(entry, tmp_path, PackageManagerKind.NPM, "safe")

        await service.track_packages([package])

        fetcher.count.assert_not_called()
        assert "mergedBumpPullRequests" not in history_repo.save_history.call_args[0][1].entries[0]

    @pytest.mark.asyncio
    async def test_merge_policy_updates_yesterday_entry(self, mock_deps, tmp_path):
        _, _, _, _, history_repo = mock_deps
        yesterday_entry = {"drift": 9, "pulse": 9, "date": "2023-01-31T06:00:00.000Z"}
        history_repo.load_history.side_effect = lambda safe_name: History([yesterday_entry])
        fetcher = Mock()
        fetcher.count.return_value = 2
        service = _service(mock_deps, fetcher=fetcher, policy=HistoryPolicy.MERGE_YESTERDAY)
        package = TrackedPackage(RepositoryEntry(PIX), tmp_path, PackageManagerKind.NPM, "safe")

        await service.track_packages([package])

        entries = history_repo.save_history.call_args[0][1].entries
        assert len(entries) == 2
        assert entries[0]["mergedBumpPullRequests"] == 2
        assert "mergedBumpPullRequests" not in entries[1]

    @pytest.mark.asyncio
    async def test_calculation_failure_halts_sequence(self, mock_deps, tmp_path):
        _, _, _, calculator, history_repo = mock_deps
        calculator.calculate.side_effect = DriftCalculationError("exit 1", str(tmp_path))
        service = _service(mock_deps)
        packages = [
            TrackedPackage(RepositoryEntry(PIX, "a"), tmp_path, PackageManagerKind.NPM, "a"),
            TrackedPackage(RepositoryEntry(PIX, "b"), tmp_path, PackageManagerKind.NPM, "b"),
        ]

        with pytest.raises(DriftCalculationError) as exc_info:
            await service.track_packages(packages)

        assert exc_info.value.repository == PIX
        assert exc_info.value.path == "a"
        assert calculator.calculate.call_count == 1
        history_repo.save_history.assert_not_called()

    @pytest.mark.asyncio
    async def test_run_writes_indexes_in_configuration_order(self, mock_deps, tmp_path):
        provisioner, _, _, _, history_repo = mock_deps
        service = _service(mock_deps, cleanup_workspaces=True)

        await service.run([RepositoryEntry(PIX, "b"), RepositoryEntry(PIX, "a")])

        index_calls = {call.args[0]: call.args[1] for call in history_repo.save_index.call_args_list}
        assert [entry.repository for entry in index_calls["history"]] == [
            "github-com-1024pix-pix-git-b",
            "github-com-1024pix-pix-git-a",
        ]
        assert index_calls["last-run"][0].file_name == "last-run-github-com-1024pix-pix-git-b.json"
        provisioner.cleanup.assert_called_once_with({PIX: tmp_path})

    def test_save_indexes_returns_repository_file_names(self, mock_deps, tmp_path):
        service = _service(mock_deps)
        package = TrackedPackage(RepositoryEntry(PIX), tmp_path, PackageManagerKind.NPM, "safe")
        package.files = ["history-safe.json", "last-run-safe.json"]

        assert service.save_indexes([package]) == ["history-index.json", "last-run-index.json"]

    @pytest.mark.asyncio
    async def test_persistence_failure_still_cleans_up(self, mock_deps):
        provisioner, _, _, _, history_repo = mock_deps
        history_repo.save_index.side_effect = PersistenceError("disk full")
        service = _service(mock_deps, cleanup_workspaces=True)

        with pytest.raises(PersistenceError):
            await service.run([RepositoryEntry(PIX)])
        provisioner.cleanup.assert_called_once()

class TestEndToEnd:
    """
    Pipeline completa con clone, installazione e libyear simulati:
    storico e indici reali su disco.
    """
    @pytest.fixture
    def pipeline(self, tmp_path, make_package):
        clone_calls = []

        async def fake_clone(url, destination):
            clone_calls.append(url)
            make_package(destination, "api", "package-lock.json")
            make_package(destination, "mon-pix", "pnpm-lock.yaml")

        cloner = Mock()
        cloner.clone = AsyncMock(side_effect=fake_clone)

        async def fake_calculate(package_path, package_manager):
            drift = 1.0 if package_manager == PackageManagerKind.NPM else 2.0
            return [{"dependency": "x", "drift": drift, "pulse": 0.5}]

        calculator = Mock()
        calculator.calculate = AsyncMock(side_effect=fake_calculate)

        installer = Mock()
        installer.install = AsyncMock(return_value=None)

        detector = PackageManagerDetector(Mock())

        data_dir = tmp_path / "data"
        clones_dir = tmp_path / "clones"
        clones_dir.mkdir()

        def build():
            return DriftTrackingService(
                provisioner=WorkspaceProvisioner(cloner, variables={}, temp_root=str(clones_dir)),
                detector=detector,
                installer=installer,
                calculator=calculator,
                history_repo=JsonHistoryRepository(str(data_dir)),
                clock=lambda: NOW,
            )
        return build, clone_calls, data_dir

    @pytest.mark.asyncio
    async def test_two_paths_one_clone_and_append(self, pipeline, repositories_content):
        build, clone_calls, data_dir = pipeline
        entries = parse_file(repositories_content)

        for _ in range(3):
            await build().run(entries)

        assert clone_calls == [PIX] * 3

        api_history = json.loads((data_dir / "history-github-com-1024pix-pix-git-api.json").read_text())
        front_history = json.loads((data_dir / "history-github-com-1024pix-pix-git-mon-pix.json").read_text())
        assert [entry["drift"] for entry in api_history] == [1.0, 1.0, 1.0]
        assert [entry["drift"] for entry in front_history] == [2.0, 2.0, 2.0]

        history_index = json.loads((data_dir / "history-index.json").read_text())
        assert history_index == [
            {"repository": "github-com-1024pix-pix-git-api", "fileName": "history-github-com-1024pix-pix-git-api.json"},
            {"repository": "github-com-1024pix-pix-git-mon-pix", "fileName": "history-github-com-1024pix-pix-git-mon-pix.json"},
        ]
        last_run = json.loads((data_dir / "last-run-github-com-1024pix-pix-git-api.json").read_text())
        assert last_run == [{"dependency": "x", "drift": 1.0, "pulse": 0.5}]

class TestCloneFailureCleanup:
    @pytest.fixture
    def service_factory(self, tmp_path, make_package):
        async def fake_clone(url, destination):
            make_package(destination, "", "package-lock.json")
            if "broken" in url:
                raise CloneError("exit 128", str(destination))

        cloner = Mock()
        cloner.clone = AsyncMock(side_effect=fake_clone)
        clones_dir = tmp_path / "clones"
        clones_dir.mkdir()

        def build(cleanup_workspaces):
            return DriftTrackingService(
                provisioner=WorkspaceProvisioner(cloner, variables={}, temp_root=str(clones_dir)),
                detector=Mock(),
                installer=Mock(),
                calculator=Mock(),
                history_repo=Mock(),
                cleanup_workspaces=cleanup_workspaces,
                clock=lambda: NOW,
            )
        return build, clones_dir

    @pytest.mark.asyncio
    async def test_cleanup_removes_every_clone(self, service_factory):
        build, clones_dir = service_factory
        entries = [RepositoryEntry("https://host/ok.git"), RepositoryEntry("https://host/broken.git")]

        with pytest.raises(ProvisioningError) as exc_info:
            await build(cleanup_workspaces=True).run(entries)

        assert [failure.repository for failure in exc_info.value.failures] == ["https://host/broken.git"]
        assert list(clones_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_without_cleanup_only_successful_clones_remain(self, service_factory):
        build, clones_dir = service_factory
        entries = [RepositoryEntry("https://host/ok.git"), RepositoryEntry("https://host/broken.git")]

        with pytest.raises(StageError) as exc_info:
            await build(cleanup_workspaces=False).run(entries)

        remaining = list(clones_dir.iterdir())
        assert remaining == [exc_info.value.workspaces["https://host/ok.git"]]
        assert (remaining[0] / "package.json").is_file()
