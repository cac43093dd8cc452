"""E2E fixtures: a fake ASUS host, USB stick, catalog and CDN."""

import json
from unittest.mock import patch

import httpx
import pytest

from biosstager import main as cli
from helpers import FakeRunner, lsblk_json, partition, usb_disk


CATALOG_URL = "https://catalog.example.com/api/product.asmx/GetPDBIOS"


@pytest.fixture
def host():
    """Host tooling for an ASUS board running BIOS 1825 with one USB stick."""
    return FakeRunner(
        lsblk_output=lsblk_json(usb_disk(children=[partition()])),
        dmi={
            "baseboard-manufacturer": "ASUSTeK COMPUTER INC.",
            "baseboard-product-name": "PRIME B760M-K D4",
            "bios-version": "1825",
        },
    )


@pytest.fixture
def network(catalog_payload, sample_archive):
    """Routes catalog and CDN requests through an httpx.MockTransport.

    ``network.version`` sets the version the catalog advertises;
    ``network.requests`` records every request made.
    """

    class Network:
        version = "1900"
        requests = []

    archive_bytes = sample_archive.read_bytes()

    def handler(request):
        Network.requests.append(request)
        if request.url.path.endswith("GetPDBIOS"):
            return httpx.Response(200, json=catalog_payload(version=Network.version))
        return httpx.Response(200, content=archive_bytes)

    transport = httpx.MockTransport(handler)
    real_client = httpx.AsyncClient

    def client(**kwargs):
        kwargs["transport"] = transport
        return real_client(**kwargs)

    Network.requests = []
    with patch("httpx.AsyncClient", side_effect=client):
        yield Network


@pytest.fixture
def run_cli(tmp_path, host, network, mounts_file):
    """Run main() as root against the fake host and network."""
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "mount_base": str(tmp_path / "mnt" / "bios-update"),
                "mount_slots": 3,
                "mounts_file": str(mounts_file),
                "catalog_url": CATALOG_URL,
            }
        ),
        encoding="utf-8",
    )

    def run(*extra):
        argv = [
            "--config", str(config_path),
            "--scratch-dir", str(tmp_path / "scratch"),
            "--log-file", str(tmp_path / "logs" / "biosstager.log"),
            "--no-reboot-prompt",
            *extra,
        ]
        with patch.object(cli, "CommandRunner", return_value=host), \
             patch.object(cli.os, "geteuid", return_value=0), \
             patch.object(cli.signal, "signal"):
            return cli.main(argv)

    return run
