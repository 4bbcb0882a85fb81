import logging
from typing import List

from ..application.errors import ConfigurationError
from ..application.interfaces import ITrackingUseCase
from ..domain.entities import TrackedPackage
from ..domain.services import parse_file

class TrackerController:
    def __init__(self, use_case: ITrackingUseCase, logger: logging.LoggerAdapter):
        self.use_case = use_case
        self.logger = logger

    def load_entries(self, repositories_file: str):
        try:
            with open(repositories_file, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as error:
            raise ConfigurationError(f"Impossibile leggere {repositories_file}: {error}") from error
        return parse_file(content)

    async def run(self, repositories_file: str) -> List[TrackedPackage]:
        entries = self.load_entries(repositories_file)
        if not entries:
            self.logger.warning(f"Nessun repository configurato in {repositories_file}.")
            return []

        self.logger.info(f"Letti {len(entries)} pacchetti da {repositories_file}.")
        tracked = await self.use_case.run(entries)

        for package in tracked:
            summary = package.summary
            if summary is None:
                continue
            bump = summary.merged_bump_pull_requests
            self.logger.info(
                f"{package.safe_name}: drift {summary.drift:.2f} libyears, pulse {summary.pulse:.2f} libyears"
                + (f", PR di bump ieri {bump}" if bump is not None else "")
            )
        return tracked
