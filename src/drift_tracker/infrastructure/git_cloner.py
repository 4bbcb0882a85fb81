import logging
from pathlib import Path

from ..domain.interfaces import ICommandRunner, IGitCloner
from ..application.errors import CloneError

class ShallowGitCloner(IGitCloner):
    def __init__(self, runner: ICommandRunner, git_binary: str = "git"):
        self.runner = runner
        self.git_binary = git_binary
        self.logger = logging.getLogger(self.__class__.__name__)

    async def clone(self, repository_url: str, destination: Path) -> None:
        command = [self.git_binary, "clone", "--depth", "1", repository_url, str(destination)]
        try:
            result = await self.runner.run(command, env={"GIT_TERMINAL_PROMPT": "0"})
        except OSError as error:
            raise CloneError(f"impossibile avviare git: {error}", str(destination)) from error

        # L'URL può contenere credenziali: non finisce mai nel messaggio d'errore.
        if result.returncode != 0:
            detail = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else "nessun output"
            detail = detail.replace(repository_url, "<repository>")
            raise CloneError(f"git clone terminato con codice {result.returncode} ({detail})", str(destination))
