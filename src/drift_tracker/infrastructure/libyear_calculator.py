import json
import logging
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ..domain.interfaces import ICommandRunner, IDriftCalculator
from ..domain.types import PackageManagerKind
from ..application.errors import DriftCalculationError

DEFAULT_LIBYEAR_COMMAND = "npx --yes libyear"

class LibyearDriftCalculator(IDriftCalculator):
    """
    Calcola drift e pulse per dipendenza invocando la CLI di libyear
    nella directory del pacchetto, con output JSON.
    """
    def __init__(
        self,
        runner: ICommandRunner,
        command: Union[str, Sequence[str]] = DEFAULT_LIBYEAR_COMMAND,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
    ):
        self.runner = runner
        self.command = shlex.split(command) if isinstance(command, str) else list(command)
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def build_command(self, package_manager: PackageManagerKind) -> List[str]:
        return [*self.command, f"--package-manager={package_manager.libyear_name}", "--all", "--json"]

    async def calculate(self, package_path: Path, package_manager: PackageManagerKind) -> List[Dict[str, Any]]:
        command = self.build_command(package_manager)
        try:
            result = await self.runner.run(command, cwd=package_path)
        except OSError as error:
            raise DriftCalculationError(f"impossibile eseguire libyear: {error}", str(package_path)) from error

        if result.returncode != 0:
            detail = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else "nessun output"
            raise DriftCalculationError(f"libyear terminato con codice {result.returncode} ({detail})", str(package_path))

        try:
            records = json.loads(result.stdout)
        except json.JSONDecodeError as error:
            raise DriftCalculationError(f"output di libyear non valido: {error}", str(package_path)) from error

        if not isinstance(records, list):
            raise DriftCalculationError("output di libyear non è una lista", str(package_path))

        self.logger.debug(f"libyear: {len(records)} dipendenze in {package_path}")
        return records
