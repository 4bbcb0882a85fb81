from enum import Enum
from typing import Literal

NominalPackageManager = Literal["npm", "yarn", "pnpm"]
"""
Package manager individuato dai lockfile, prima della distinzione
tra le due generazioni di yarn.
"""

class PackageManagerKind(str, Enum):
    """
    Package manager effettivo di un pacchetto.

    Valori possibili:
    - NPM
    - YARN_CLASSIC: yarn 0.x / 1.x, supporta `--ignore-scripts`.
    - YARN_BERRY: yarn >= 2, gli script si disattivano via `enableScripts`.
    - PNPM
    """
    NPM = "npm"
    YARN_CLASSIC = "yarn-classic"
    YARN_BERRY = "yarn-berry"
    PNPM = "pnpm"

    @property
    def libyear_name(self) -> str:
        return _LIBYEAR_NAMES[self]

_LIBYEAR_NAMES = {
    PackageManagerKind.NPM: "npm",
    PackageManagerKind.YARN_CLASSIC: "yarn",
    PackageManagerKind.YARN_BERRY: "berry",
    PackageManagerKind.PNPM: "pnpm",
}

class HistoryPolicy(str, Enum):
    """
    Strategia di scrittura dello storico.

    - APPEND: ogni esecuzione aggiunge un nuovo Summary, che riporta anche
      il conteggio delle PR di bump di ieri.
    - MERGE_YESTERDAY: il conteggio viene attaccato al Summary di ieri,
      se presente; il Summary di oggi viene aggiunto senza il campo.
    """
    APPEND = "append"
    MERGE_YESTERDAY = "merge-yesterday"
