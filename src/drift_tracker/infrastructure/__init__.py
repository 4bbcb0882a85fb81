from .process_runner import AsyncCommandRunner
from .git_cloner import ShallowGitCloner
from .workspace import WorkspaceProvisioner
from .package_managers import PackageManagerDetector, DependencyInstaller
from .libyear_calculator import LibyearDriftCalculator
from .github_source import GitHubBumpPullRequestFetcher
from .json_history_repository import JsonHistoryRepository
from .logging_config import configure_logging, LayerLoggerAdapter

__all__ = [
    "AsyncCommandRunner",
    "ShallowGitCloner",
    "WorkspaceProvisioner",
    "PackageManagerDetector",
    "DependencyInstaller",
    "LibyearDriftCalculator",
    "GitHubBumpPullRequestFetcher",
    "JsonHistoryRepository",
    "configure_logging",
    "LayerLoggerAdapter",
]
