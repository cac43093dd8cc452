"""Unit tests for configuration loading."""

import json
from pathlib import Path

import pytest

from biosstager.models.config import UpdaterConfig, load_config


@pytest.mark.unit
class TestLoadConfig:

    def test_defaults(self):
        config = load_config()

        assert config.scratch_root == Path("/tmp/ASUS_BIOS_Update")
        assert config.mount_base == "/mnt/bios-update"
        assert config.filesystem == "vfat"
        assert config.transport == "usb"
        assert config.payload_extension == "CAP"
        assert config.supported_vendors == ["asus"]

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.json") == UpdaterConfig()

    def test_file_values_and_overrides(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps({"mount_base": "/media/stage", "mount_slots": 2, "scratch_root": "/var/tmp/a"}),
            encoding="utf-8",
        )

        config = load_config(path, scratch_root="/var/tmp/b", log_file=None)

        assert config.mount_base == "/media/stage"
        assert config.mount_slots == 2
        assert config.scratch_root == Path("/var/tmp/b")
        assert config.log_file == "./logs/biosstager.log"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{ not json", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid config JSON"):
            load_config(path)

    def test_non_object_root(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ValueError, match="must be an object"):
            load_config(path)

    @pytest.mark.parametrize(
        "override",
        [
            {"mount_slots": 0},
            {"catalog_url": "ftp://example.com"},
            {"supported_vendors": ["(unclosed"]},
            {"supported_vendors": []},
            {"payload_extension": "."},
        ],
    )
    def test_invalid_values(self, override):
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(**override)

    def test_payload_extension_leading_dot_stripped(self):
        assert load_config(payload_extension=".rom").payload_extension == "rom"
