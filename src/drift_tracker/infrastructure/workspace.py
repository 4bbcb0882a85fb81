import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ..domain.entities import RepositoryEntry
from ..domain.interfaces import IGitCloner, IWorkspaceProvisioner
from ..domain.services import replace_repository_variables
from ..application.errors import CloneError, ProvisioningError

class WorkspaceProvisioner(IWorkspaceProvisioner):
    """
    Crea una directory temporanea e un clone shallow per ogni URL distinto.
    Più righe della configurazione che puntano allo stesso repository
    condividono lo stesso workspace.
    """
    def __init__(
        self,
        cloner: IGitCloner,
        variables: Mapping[str, str],
        temp_root: Optional[str] = None,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
    ):
        self.cloner = cloner
        self.variables = variables
        self.temp_root = temp_root
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    async def provision(self, entries: Sequence[RepositoryEntry]) -> Dict[str, Path]:
        repositories = list(dict.fromkeys(entry.repository for entry in entries))
        self.logger.info(f"Clonazione di {len(repositories)} repository distinti.")

        results = await asyncio.gather(
            *(self._provision_repository(repository) for repository in repositories),
            return_exceptions=True,
        )

        workspaces: Dict[str, Path] = {}
        failures: List[CloneError] = []
        for repository, result in zip(repositories, results):
            if isinstance(result, CloneError):
                self.logger.error(f"Clone fallito: {result}")
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                workspaces[repository] = result

        if failures:
            raise ProvisioningError(failures, workspaces)
        return workspaces

    async def _provision_repository(self, repository: str) -> Path:
        workspace = Path(tempfile.mkdtemp(prefix="drift-tracker-", dir=self.temp_root))
        clone_url = replace_repository_variables(repository, self.variables)
        try:
            await self.cloner.clone(clone_url, workspace)
        except CloneError as error:
            # Un clone parziale non è mai riutilizzabile.
            shutil.rmtree(workspace, ignore_errors=True)
            raise CloneError(error.args[0], repository) from error

        self.logger.info(f"Clonato {repository} in {workspace}")
        return workspace

    def cleanup(self, workspaces: Mapping[str, Path]) -> None:
        for repository, workspace in workspaces.items():
            shutil.rmtree(workspace, ignore_errors=True)
            self.logger.info(f"Rimosso workspace di {repository}")
