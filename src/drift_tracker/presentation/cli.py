import asyncio
import logging
import os
import sys
from dotenv import load_dotenv

from ..config import TrackerConfig
from ..application.errors import TrackerError
from ..application.use_cases import DriftTrackingService
from ..infrastructure.logging_config import configure_logging, LayerLoggerAdapter
from ..infrastructure.process_runner import AsyncCommandRunner
from ..infrastructure.git_cloner import ShallowGitCloner
from ..infrastructure.workspace import WorkspaceProvisioner
from ..infrastructure.package_managers import PackageManagerDetector, DependencyInstaller
from ..infrastructure.libyear_calculator import LibyearDriftCalculator
from ..infrastructure.github_source import GitHubBumpPullRequestFetcher
from ..infrastructure.json_history_repository import JsonHistoryRepository
from .controllers import TrackerController

def build_controller(config: TrackerConfig) -> TrackerController:
    cli_logger = LayerLoggerAdapter(logging.getLogger("CLI"), {"layer": "Presentation"})
    app_logger = LayerLoggerAdapter(logging.getLogger("DriftTrackingService"), {"layer": "Application"})
    infra_logger = LayerLoggerAdapter(logging.getLogger("Workspace"), {"layer": "Infrastructure"})

    runner = AsyncCommandRunner()
    fetcher = None
    if config.enrichment_enabled:
        fetcher = GitHubBumpPullRequestFetcher(
            token=config.github_token,
            url=config.github_graphql_url,
            timeout=config.http_timeout,
        )
    else:
        cli_logger.info("GITHUB_TOKEN non impostato: conteggio delle PR di bump disattivato.")

    service = DriftTrackingService(
        provisioner=WorkspaceProvisioner(ShallowGitCloner(runner), variables=os.environ, logger=infra_logger),
        detector=PackageManagerDetector(runner, logger=infra_logger),
        installer=DependencyInstaller(runner, logger=infra_logger),
        calculator=LibyearDriftCalculator(runner, command=config.libyear_command),
        history_repo=JsonHistoryRepository(config.data_directory),
        fetcher=fetcher,
        policy=config.history_policy,
        cleanup_workspaces=config.cleanup_workspaces,
        logger=app_logger,
    )
    return TrackerController(service, cli_logger)

def main():
    if os.environ.get("TESTING_MODE") != "1":
        load_dotenv()
    configure_logging()

    cli_logger = LayerLoggerAdapter(logging.getLogger("CLI"), {"layer": "Presentation"})

    try:
        config = TrackerConfig.from_env()
        cli_logger.info(f"Configurazione caricata: {config}")

        controller = build_controller(config)
        asyncio.run(controller.run(config.repositories_file))
    except TrackerError as e:
        cli_logger.error(f"Esecuzione interrotta: {e}")
        sys.exit(1)
    except Exception as e:
        cli_logger.critical(f"Errore fatale imprevisto: {e}", exc_info=True)
        sys.exit(1)

if __name__ == "__main__":
    main()
