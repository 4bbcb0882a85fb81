from dataclasses import dataclass, field
import os
from typing import Mapping, Optional

from .domain.types import HistoryPolicy
from .application.errors import ConfigurationError
from .infrastructure.github_source import GITHUB_GRAPHQL_URL
from .infrastructure.libyear_calculator import DEFAULT_LIBYEAR_COMMAND

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}

def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name}: valore booleano non valido '{value}'")

@dataclass
class TrackerConfig:
    """
    Parametri di configurazione del tracker, letti dalle variabili
    d'ambiente (eventualmente caricate da un file .env).
    """

    # --- Input e output ---
    repositories_file: str = "repositories.txt"   # Un repository per riga, formato URL[#path]
    data_directory: str = "data"                   # Storici, ultimi risultati e indici

    # --- Comportamento della pipeline ---
    history_policy: HistoryPolicy = HistoryPolicy.APPEND
    cleanup_workspaces: bool = False               # I clone temporanei restano su disco se False
    libyear_command: str = DEFAULT_LIBYEAR_COMMAND

    # --- Arricchimento con le PR di bump ---
    github_token: Optional[str] = field(default=None, repr=False)
    github_graphql_url: str = GITHUB_GRAPHQL_URL
    http_timeout: float = 30.0

    @property
    def enrichment_enabled(self) -> bool:
        return bool(self.github_token)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TrackerConfig":
        env = os.environ if environ is None else environ

        policy_value = env.get("DRIFT_HISTORY_POLICY", HistoryPolicy.APPEND.value).strip().lower()
        try:
            history_policy = HistoryPolicy(policy_value)
        except ValueError as error:
            allowed = ", ".join(policy.value for policy in HistoryPolicy)
            raise ConfigurationError(f"DRIFT_HISTORY_POLICY: '{policy_value}' non valido (ammessi: {allowed})") from error

        timeout_value = env.get("DRIFT_HTTP_TIMEOUT", "30")
        try:
            http_timeout = float(timeout_value)
        except ValueError as error:
            raise ConfigurationError(f"DRIFT_HTTP_TIMEOUT: '{timeout_value}' non è un numero") from error
        if http_timeout <= 0:
            raise ConfigurationError("DRIFT_HTTP_TIMEOUT deve essere positivo")

        libyear_command = env.get("DRIFT_LIBYEAR_COMMAND", DEFAULT_LIBYEAR_COMMAND)
        if not libyear_command.strip():
            raise ConfigurationError("DRIFT_LIBYEAR_COMMAND non può essere vuoto")

        return cls(
            repositories_file=env.get("DRIFT_REPOSITORIES_FILE", "repositories.txt"),
            data_directory=env.get("DRIFT_DATA_DIR", "data"),
            history_policy=history_policy,
            cleanup_workspaces=_parse_bool("DRIFT_CLEANUP_WORKSPACES", env.get("DRIFT_CLEANUP_WORKSPACES", "false")),
            libyear_command=libyear_command,
            github_token=env.get("GITHUB_TOKEN") or None,
            github_graphql_url=env.get("GITHUB_GRAPHQL_URL", GITHUB_GRAPHQL_URL),
            http_timeout=http_timeout,
        )
