import pytest
from pathlib import Path
from unittest.mock import AsyncMock, Mock

from src.drift_tracker.domain.interfaces import CommandResult

@pytest.fixture
def repositories_content():
    return """
https://github.com/1024pix/pix.git#api
https://github.com/1024pix/pix.git#mon-pix
# comment line
"""

@pytest.fixture
def command_runner():
    """Runner finto: ogni comando termina con successo e senza output."""
    runner = Mock()
    runner.run = AsyncMock(return_value=CommandResult(0, "", ""))
    return runner

@pytest.fixture
def make_package():
    """
    Crea una directory di pacchetto con package.json e, opzionalmente,
    un lockfile. Restituisce il path del pacchetto.
    """
    def _make(root: Path, sub_path: str = "", lockfile: str | None = None) -> Path:
        package_path = root / sub_path if sub_path else root
        package_path.mkdir(parents=True, exist_ok=True)
        (package_path / "package.json").write_text('{"name": "pkg"}', encoding="utf-8")
        if lockfile:
            (package_path / lockfile).write_text("", encoding="utf-8")
        return package_path
    return _make
