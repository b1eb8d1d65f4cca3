"""Package manager command runner (``bower update`` and friends)."""

import asyncio
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .error_handling import CommandError
from .structured_logging import get_command_logger, log_command_message


class PackageManagerCommand:
    """Runs an install/update command of the package manager in a project."""

    def __init__(self, executable: str = "bower", timeout_seconds: float = 300.0):
        """
        Initialize the runner.

        Args:
            executable: Package manager executable
            timeout_seconds: Time allowed for the command to finish
        """
        self.executable = executable
        self.timeout_seconds = timeout_seconds

    def build_command(self, command: str, args: Sequence[str] = ()) -> List[str]:
        if not command or not isinstance(command, str):
            raise CommandError("Invalid package manager command")
        return [self.executable, command, *(str(arg) for arg in args)]

    async def run(
        self, command: str, args: Sequence[str] = (), cwd: Optional[Path] = None
    ) -> Tuple[str, str]:
        """
        Run ``<executable> <command> <args...>`` in ``cwd``.

        Output is logged line by line through the command logger.

        Returns:
            Tuple of (stdout, stderr)

        Raises:
            CommandError: If the executable is missing, times out or exits
                with a non-zero status
        """
        full_command = self.build_command(command, args)
        logger = get_command_logger()
        logger.info("command_started", command=" ".join(full_command), cwd=str(cwd))

        try:
            process = await asyncio.create_subprocess_exec(
                *full_command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=cwd,
            )
        except OSError as e:
            raise CommandError(
                f"Cannot run {self.executable} {command}: {e.strerror or e}"
            ) from e

        try:
            stdout_data, stderr_data = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise CommandError(
                f"{self.executable} {command} timed out after {self.timeout_seconds}s"
            ) from None

        stdout = stdout_data.decode("utf-8", errors="replace") if stdout_data else ""
        stderr = stderr_data.decode("utf-8", errors="replace") if stderr_data else ""

        for stream_name, text in (("stdout", stdout), ("stderr", stderr)):
            for line in text.splitlines():
                if line.strip():
                    log_command_message(command, stream_name, line)

        if process.returncode:
            message = stderr.strip().splitlines()[-1] if stderr.strip() else ""
            raise CommandError(
                f"{self.executable} {command} exited with status {process.returncode}"
                + (f": {message}" if message else ""),
                returncode=process.returncode,
            )

        logger.info("command_completed", command=command)
        return stdout, stderr
