"""Global pytest fixtures and configuration."""

import logging
import sys
import zipfile
from pathlib import Path

import pytest

# Add src and the shared test helpers to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from biosstager.models.config import UpdaterConfig  # noqa: E402
from helpers import PAYLOAD_BYTES, FakeRunner  # noqa: E402


@pytest.fixture(autouse=True)
def reset_app_logger():
    """Drop handlers main() attached so each test logs to its own tmp_path."""
    yield
    logger = logging.getLogger("biosstager")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def mounts_file(tmp_path):
    """Kernel mount table without any removable media mounted."""
    path = tmp_path / "mounts"
    path.write_text(
        "proc /proc proc rw,nosuid 0 0\n/dev/nvme0n1p2 / ext4 rw,relatime 0 0\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def config(tmp_path, mounts_file):
    """UpdaterConfig pointing every path into tmp_path."""
    return UpdaterConfig(
        scratch_root=tmp_path / "scratch",
        mount_base=str(tmp_path / "mnt" / "bios-update"),
        mount_slots=3,
        mounts_file=mounts_file,
        catalog_url="https://catalog.example.com/api/product.asmx/GetPDBIOS",
        log_file=str(tmp_path / "logs" / "biosstager.log"),
    )


@pytest.fixture
def sample_archive(tmp_path):
    """Vendor archive holding a readme, a renamer tool and the capsule payload."""
    archive_path = tmp_path / "PRIME-B760M-K-D4-ASUS-1900.zip"
    with zipfile.ZipFile(archive_path, "w") as zf:
        zf.writestr("PRIME-B760M-K-D4-ASUS-1900/readme.txt", "Flash with EZ Flash 3")
        zf.writestr("PRIME-B760M-K-D4-ASUS-1900/BIOSRenamer.exe", b"MZ")
        zf.writestr(
            "PRIME-B760M-K-D4-ASUS-1900/PRIME-B760M-K-D4-ASUS-1900.CAP", PAYLOAD_BYTES
        )
    return archive_path


@pytest.fixture
def catalog_payload():
    """Factory for GetPDBIOS responses."""

    def make(
        version="1900",
        url="https://dlcdnets.asus.com/pub/ASUS/mb/BIOS/PRIME-B760M-K-D4-ASUS-1900.zip?model=PRIME%20B760M-K%20D4",
    ):
        return {
            "Result": {
                "Count": 1,
                "Obj": [
                    {
                        "Name": "BIOS",
                        "Count": 2,
                        "Files": [
                            {
                                "Id": "1",
                                "Version": version,
                                "Title": f"PRIME B760M-K D4 BIOS {version}",
                                "Description": "Improve system stability",
                                "FileSize": "10.61 MBytes",
                                "ReleaseDate": "2024/06/18",
                                "DownloadUrl": {"Global": url, "China": None},
                            },
                            {
                                "Id": "0",
                                "Version": "1825",
                                "ReleaseDate": "2024/01/10",
                                "DownloadUrl": {"Global": "https://example.com/old.zip"},
                            },
                        ],
                    }
                ],
            },
            "Status": "SUCCESS",
            "Message": "",
        }

    return make
