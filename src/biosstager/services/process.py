"""Host command execution for dmidecode, lsblk and mount tooling."""

import shutil
import subprocess
from typing import Optional, Sequence
import logging


class CommandRunner:
    """Runs host commands synchronously and normalizes their failures."""

    DEFAULT_TIMEOUT = 60.0

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        """Initialize command runner.

        Args:
            timeout: Seconds before a command is considered hung
        """
        self.logger = logging.getLogger("biosstager.process")
        self.timeout = timeout

    def run(self, args: Sequence[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a command and capture its text output.

        Args:
            args: Command and arguments (no shell)
            check: Raise on non-zero exit status

        Returns:
            CompletedProcess with stdout/stderr as text

        Raises:
            RuntimeError: If the command is missing, times out, or fails with check=True
        """
        command = " ".join(args)
        self.logger.debug(f"Running: {command}")

        try:
            result = subprocess.run(
                list(args),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise RuntimeError(f"COMMAND_NOT_FOUND: {args[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise RuntimeError(
                f"COMMAND_TIMEOUT: {command} (after {self.timeout}s)"
            ) from e

        if check and result.returncode != 0:
            raise RuntimeError(
                f"COMMAND_FAILED: {command}: exit code {result.returncode}, "
                f"stderr: {result.stderr.strip()}"
            )

        return result

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)

    def missing_tools(self, tools: Sequence[str]) -> list[str]:
        """Return the subset of ``tools`` not found on PATH."""
        missing = [tool for tool in tools if self.which(tool) is None]
        if missing:
            self.logger.warning(f"Missing host tools: {', '.join(missing)}")
        return missing
