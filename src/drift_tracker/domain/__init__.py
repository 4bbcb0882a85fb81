from .entities import RepositoryEntry, Summary, History, IndexEntry, TrackedPackage
from .interfaces import (
    CommandResult,
    ICommandRunner,
    IGitCloner,
    IWorkspaceProvisioner,
    IPackageManagerDetector,
    IDependencyInstaller,
    IDriftCalculator,
    IBumpPullRequestFetcher,
    IHistoryRepository,
)
from .services import (
    parse_file,
    parse_repository_line,
    replace_repository_variables,
    replace_repository_with_safe_chars,
    get_safe_repository_name,
    create_summary,
    get_yesterday,
    get_query_for_merged_bump_pull_requests,
    get_github_repository_name,
)
from .types import PackageManagerKind, HistoryPolicy, NominalPackageManager
from .utils import parse_major_version, is_yarn_classic_version

__all__ = [
    "RepositoryEntry",
    "Summary",
    "History",
    "IndexEntry",
    "TrackedPackage",
    "CommandResult",
    "ICommandRunner",
    "IGitCloner",
    "IWorkspaceProvisioner",
    "IPackageManagerDetector",
    "IDependencyInstaller",
    "IDriftCalculator",
    "IBumpPullRequestFetcher",
    "IHistoryRepository",
    "parse_file",
    "parse_repository_line",
    "replace_repository_variables",
    "replace_repository_with_safe_chars",
    "get_safe_repository_name",
    "create_summary",
    "get_yesterday",
    "get_query_for_merged_bump_pull_requests",
    "get_github_repository_name",
    "PackageManagerKind",
    "HistoryPolicy",
    "NominalPackageManager",
    "parse_major_version",
    "is_yarn_classic_version",
]
