import asyncio
import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Sequence

from ..domain.interfaces import CommandResult, ICommandRunner

class AsyncCommandRunner(ICommandRunner):
    """
    Esegue comandi esterni come sottoprocessi asyncio, senza shell.
    La working directory è sempre passata esplicitamente.
    """
    def __init__(self, base_env: Optional[Mapping[str, str]] = None):
        self.base_env = dict(base_env) if base_env is not None else None
        self.logger = logging.getLogger(self.__class__.__name__)

    async def run(
        self,
        command: Sequence[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        process_env = dict(self.base_env if self.base_env is not None else os.environ)
        if env:
            process_env.update(env)

        self.logger.debug(f"Esecuzione '{command[0]}' in {cwd or '.'}")
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=str(cwd) if cwd is not None else None,
            env=process_env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        return CommandResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
