"""Shared test doubles for lsblk, mount and dmidecode interactions."""

import json
import subprocess


PAYLOAD_BYTES = b"\x00\x01CAPSULE-HEADER\r\n\x1a" + bytes(range(256)) * 16


def completed(args, stdout="", returncode=0, stderr=""):
    """Build a CompletedProcess like CommandRunner.run returns."""
    return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)


def lsblk_json(*disks):
    return json.dumps({"blockdevices": list(disks)})


def usb_disk(name="sdb", model="SanDisk Ultra", children=None, tran="usb", **extra):
    disk = {
        "name": name,
        "path": f"/dev/{name}",
        "type": "disk",
        "tran": tran,
        "fstype": None,
        "label": None,
        "size": 16_000_000_000,
        "model": model,
        "mountpoint": None,
    }
    disk.update(extra)
    if children is not None:
        disk["children"] = children
    return disk


def partition(name="sdb1", fstype="vfat", label="BIOS", mountpoint=None, size=15_999_000_000):
    return {
        "name": name,
        "path": f"/dev/{name}",
        "type": "part",
        "tran": None,
        "fstype": fstype,
        "label": label,
        "size": size,
        "model": None,
        "mountpoint": mountpoint,
    }


class FakeRunner:
    """Stands in for CommandRunner, answering lsblk/mount/umount/dmidecode."""

    def __init__(self, lsblk_output="", dmi=None, fail=()):
        self.lsblk_output = lsblk_output
        self.dmi = dmi or {}
        self.fail = set(fail)
        self.calls = []

    def run(self, args, check=True):
        args = list(args)
        self.calls.append(args)
        if args[0] in self.fail:
            raise RuntimeError(f"COMMAND_FAILED: {' '.join(args)}: exit code 32")
        if args[0] == "lsblk":
            return completed(args, stdout=self.lsblk_output)
        if args[0] == "dmidecode":
            return completed(args, stdout=self.dmi.get(args[2], "") + "\n")
        return completed(args)

    def commands(self, name):
        return [call for call in self.calls if call[0] == name]

    def missing_tools(self, tools):
        return []
