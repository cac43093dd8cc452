"""Unit tests for CommandRunner."""

import subprocess
from unittest.mock import patch

import pytest

from biosstager.services.process import CommandRunner


@pytest.mark.unit
class TestCommandRunner:
    """Test CommandRunner with subprocess.run patched."""

    @pytest.fixture
    def runner(self):
        return CommandRunner(timeout=5)

    def test_run_success(self, runner):
        completed = subprocess.CompletedProcess(["lsblk"], 0, stdout="{}", stderr="")

        with patch("subprocess.run", return_value=completed) as mock_run:
            result = runner.run(["lsblk", "-J"])

        assert result.stdout == "{}"
        mock_run.assert_called_once_with(
            ["lsblk", "-J"], capture_output=True, text=True, timeout=5, check=False
        )

    def test_run_nonzero_exit(self, runner):
        completed = subprocess.CompletedProcess(
            ["mount"], 32, stdout="", stderr="mount: wrong fs type\n"
        )

        with patch("subprocess.run", return_value=completed):
            with pytest.raises(RuntimeError, match="COMMAND_FAILED.*exit code 32.*wrong fs type"):
                runner.run(["mount", "-t", "vfat", "/dev/sdb1", "/mnt/x"])

    def test_run_nonzero_exit_unchecked(self, runner):
        completed = subprocess.CompletedProcess(["umount"], 1, stdout="", stderr="not mounted")

        with patch("subprocess.run", return_value=completed):
            result = runner.run(["umount", "/mnt/x"], check=False)

        assert result.returncode == 1

    def test_run_missing_command(self, runner):
        with patch("subprocess.run", side_effect=FileNotFoundError("dmidecode")):
            with pytest.raises(RuntimeError, match="COMMAND_NOT_FOUND: dmidecode"):
                runner.run(["dmidecode", "-s", "bios-version"])

    def test_run_timeout(self, runner):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(["mount"], 5)):
            with pytest.raises(RuntimeError, match="COMMAND_TIMEOUT"):
                runner.run(["mount", "/dev/sdb1", "/mnt/x"])

    def test_missing_tools(self, runner):
        found = {"lsblk": "/usr/bin/lsblk", "mount": "/usr/bin/mount"}

        with patch("shutil.which", side_effect=found.get):
            missing = runner.missing_tools(["dmidecode", "lsblk", "mount", "umount"])

        assert missing == ["dmidecode", "umount"]
