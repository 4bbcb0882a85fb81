import logging
from typing import Any, MutableMapping

QUIET_LOGGERS = ("urllib3", "asyncio")

def configure_logging(level: int = logging.INFO) -> None:
    """
    Configura formato e livello del logging per tutti i layer del tracker.
    I logger di librerie rumorose vengono limitati ai warning.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)-8s - [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

class LayerLoggerAdapter(logging.LoggerAdapter):
    """
    Adapter che antepone il nome del layer architetturale
    (Presentation, Application, Infrastructure) ai messaggi di log.
    """
    def process(
        self,
        msg: Any,
        kwargs: MutableMapping[str, Any],
    ) -> tuple[Any, MutableMapping[str, Any]]:
        layer_name = self.extra.get("layer", "Generic") if self.extra else "Generic"
        return f"[{layer_name}] {msg}", kwargs
