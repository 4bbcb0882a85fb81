import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from ..domain.entities import RepositoryEntry
from ..domain.interfaces import CommandResult, ICommandRunner, IDependencyInstaller, IPackageManagerDetector
from ..domain.types import NominalPackageManager, PackageManagerKind
from ..domain.utils import is_yarn_classic_version
from ..application.errors import InstallError, PackageManagerDetectionError

_LOCKFILES: Tuple[Tuple[str, NominalPackageManager], ...] = (
    ("package-lock.json", "npm"),
    ("npm-shrinkwrap.json", "npm"),
    ("yarn.lock", "yarn"),
    ("pnpm-lock.yaml", "pnpm"),
)

_INSTALL_ENV = {"CI": "true"}

def _last_line(text: str) -> str:
    lines = [line for line in text.strip().splitlines() if line.strip()]
    return lines[-1].strip() if lines else ""

def _search_directories(package_path: Path, workspace_root: Path) -> List[Path]:
    package_path = package_path.resolve()
    workspace_root = workspace_root.resolve()
    directories = [package_path]
    if workspace_root != package_path and workspace_root in package_path.parents:
        for parent in package_path.parents:
            directories.append(parent)
            if parent == workspace_root:
                break
    return directories

def probe_package_manager(package_path: Path, workspace_root: Path) -> Optional[NominalPackageManager]:
    """
    Individua il package manager dai lockfile, risalendo dalla directory
    del pacchetto fino alla radice del workspace. In assenza di lockfile
    un package.json implica npm.
    """
    for directory in _search_directories(package_path, workspace_root):
        for file_name, manager in _LOCKFILES:
            if (directory / file_name).is_file():
                return manager
        if (directory / "pnpm-workspace.yaml").is_file():
            return "pnpm"

    if (package_path / "package.json").is_file():
        return "npm"
    return None

def install_commands(package_manager: PackageManagerKind) -> List[List[str]]:
    """Comandi di installazione, con gli script di lifecycle disattivati."""
    match package_manager:
        case PackageManagerKind.NPM:
            return [["npm", "install", "--ignore-scripts"]]
        case PackageManagerKind.PNPM:
            return [["pnpm", "install", "--ignore-scripts"]]
        case PackageManagerKind.YARN_CLASSIC:
            return [["yarn", "install", "--ignore-scripts", "--non-interactive"]]
        case PackageManagerKind.YARN_BERRY:
            # yarn berry non ha un flag equivalente a --ignore-scripts.
            return [
                ["yarn", "config", "set", "enableScripts", "false"],
                ["yarn", "install"],
            ]
    raise ValueError(f"Package manager non gestito: {package_manager}")

class PackageManagerDetector(IPackageManagerDetector):
    def __init__(
        self,
        runner: ICommandRunner,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
    ):
        self.runner = runner
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    async def detect(self, entry: RepositoryEntry, package_path: Path, workspace_root: Path) -> PackageManagerKind:
        if not package_path.is_dir():
            raise PackageManagerDetectionError(f"directory {package_path} inesistente", entry.repository, entry.path)

        nominal = probe_package_manager(package_path, workspace_root)
        if nominal is None:
            raise PackageManagerDetectionError("nessun lockfile o package.json trovato", entry.repository, entry.path)

        if nominal != "yarn":
            return PackageManagerKind(nominal)

        version = await self._yarn_version(entry, package_path)
        is_classic = is_yarn_classic_version(version)
        if is_classic is None:
            raise PackageManagerDetectionError(f"versione di yarn non riconosciuta: '{version}'", entry.repository, entry.path)

        self.logger.debug(f"{entry.line}: yarn {version}")
        return PackageManagerKind.YARN_CLASSIC if is_classic else PackageManagerKind.YARN_BERRY

    async def _yarn_version(self, entry: RepositoryEntry, package_path: Path) -> str:
        try:
            result = await self.runner.run(["yarn", "--version"], cwd=package_path)
        except OSError as error:
            raise PackageManagerDetectionError(f"impossibile eseguire yarn: {error}", entry.repository, entry.path) from error

        if result.returncode != 0:
            raise PackageManagerDetectionError(
                f"yarn --version terminato con codice {result.returncode} ({_last_line(result.stderr)})",
                entry.repository,
                entry.path,
            )
        return _last_line(result.stdout)

class DependencyInstaller(IDependencyInstaller):
    def __init__(
        self,
        runner: ICommandRunner,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
    ):
        self.runner = runner
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    async def install(self, entry: RepositoryEntry, package_path: Path, package_manager: PackageManagerKind) -> None:
        for command in install_commands(package_manager):
            result = await self._run(entry, package_path, command)
            if result.returncode != 0:
                detail = _last_line(result.stderr) or _last_line(result.stdout)
                raise InstallError(
                    f"'{' '.join(command)}' terminato con codice {result.returncode} ({detail})",
                    entry.repository,
                    entry.path,
                )

    async def _run(self, entry: RepositoryEntry, package_path: Path, command: Sequence[str]) -> CommandResult:
        self.logger.info(f"{entry.line}: {' '.join(command)}")
        try:
            return await self.runner.run(command, cwd=package_path, env=_INSTALL_ENV)
        except OSError as error:
            raise InstallError(f"impossibile eseguire '{command[0]}': {error}", entry.repository, entry.path) from error
