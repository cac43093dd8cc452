"""Removable media discovery, selection and mount point management.

Resolution produces exactly one accessible destination directory:

1. ``lsblk`` lists block devices; only disks on the configured transport
   (USB) are considered, and their partitions are checked for the required
   filesystem (vfat). Mounted partitions are checked against the kernel mount
   table, unmounted ones against lsblk's own FSTYPE.
2. One match is used directly, several are handed to a chooser callback.
3. An unmounted choice is mounted on the lowest free ``<mount_base>-<n>``
   slot. Every mount made here is recorded as an AccessPointLease in a
   collection owned by the caller, which later passes it to release().
"""

import json
import re
from pathlib import Path
from typing import Callable, Optional, Sequence
import logging

from biosstager import console
from biosstager.errors import (
    MountFailed,
    NoAccessPointAvailable,
    NoRemovableMediaFound,
)
from biosstager.models.media import AccessPointLease, StorageCandidate
from biosstager.services.process import CommandRunner


Chooser = Callable[[Sequence[StorageCandidate]], int]

LSBLK_COLUMNS = "NAME,PATH,TYPE,TRAN,FSTYPE,LABEL,SIZE,MODEL,MOUNTPOINT"

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def _unescape_mount_field(field: str) -> str:
    """Decode the octal escapes (\\040 etc.) used in /proc/self/mounts."""
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def parse_mount_table(text: str) -> dict[str, str]:
    """Map mount point -> filesystem type from /proc/self/mounts content."""
    table = {}
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 3:
            continue
        table[_unescape_mount_field(fields[1])] = fields[2]
    return table


def _mountpoint_of(entry: dict) -> Optional[str]:
    mountpoint = entry.get("mountpoint")
    if mountpoint:
        return mountpoint
    # lsblk >= 2.37 may also report a "mountpoints" list
    for candidate in entry.get("mountpoints") or []:
        if candidate:
            return candidate
    return None


class MediaResolver:
    """Finds or prepares a FAT32 removable partition to stage onto."""

    def __init__(
        self,
        mount_base: str = "/mnt/bios-update",
        mount_slots: int = 8,
        filesystem: str = "vfat",
        transport: str = "usb",
        mounts_file: Path = Path("/proc/self/mounts"),
        chooser: Optional[Chooser] = None,
        runner: Optional[CommandRunner] = None,
    ):
        """Initialize media resolver.

        Args:
            mount_base: Prefix of mount points created here
            mount_slots: Number of "<mount_base>-<n>" slots to scan
            filesystem: Required filesystem type
            transport: Required disk transport
            mounts_file: Kernel mount table to read
            chooser: Callback returning a 0-based index when several candidates match
            runner: CommandRunner instance (default runner if None)
        """
        self.logger = logging.getLogger("biosstager.media")
        self.mount_base = mount_base
        self.mount_slots = mount_slots
        self.filesystem = filesystem.lower()
        self.transport = transport.lower()
        self.mounts_file = Path(mounts_file)
        self.chooser = chooser or console.choose_candidate
        self.runner = runner or CommandRunner()

    # Discovery

    def read_mount_table(self) -> dict[str, str]:
        try:
            return parse_mount_table(self.mounts_file.read_text(encoding="utf-8"))
        except OSError as e:
            self.logger.warning(f"Cannot read mount table {self.mounts_file}: {e}")
            return {}

    def list_block_devices(self) -> list[dict]:
        """Return lsblk's device tree.

        Raises:
            NoRemovableMediaFound: If lsblk fails or prints unusable output
        """
        try:
            result = self.runner.run(["lsblk", "-J", "-b", "-o", LSBLK_COLUMNS])
            payload = json.loads(result.stdout)
        except RuntimeError as e:
            raise NoRemovableMediaFound(f"Failed to list block devices: {e}") from e
        except json.JSONDecodeError as e:
            raise NoRemovableMediaFound(f"lsblk returned non-JSON output: {e}") from e

        devices = payload.get("blockdevices") if isinstance(payload, dict) else None
        return devices or []

    def discover(self) -> list[StorageCandidate]:
        """Enumerate matching partitions on removable disks, in lsblk order."""
        mount_table = self.read_mount_table()
        candidates = []

        for disk in self.list_block_devices():
            if disk.get("type") != "disk":
                continue
            if (disk.get("tran") or "").lower() != self.transport:
                continue

            # A partitionless stick formatted as a whole counts as its own partition
            partitions = disk.get("children") or [disk]
            for part in partitions:
                candidate = self._to_candidate(part, disk, mount_table)
                if candidate is not None:
                    candidates.append(candidate)

        self.logger.info(
            f"Found {len(candidates)} {self.filesystem} partition(s) on "
            f"{self.transport} media"
        )
        return candidates

    def _to_candidate(
        self, part: dict, disk: dict, mount_table: dict[str, str]
    ) -> Optional[StorageCandidate]:
        mountpoint = _mountpoint_of(part)
        if mountpoint:
            fstype = mount_table.get(mountpoint) or part.get("fstype") or ""
        else:
            fstype = part.get("fstype") or ""

        if fstype.lower() != self.filesystem:
            self.logger.debug(f"Skipping {part.get('name')}: filesystem {fstype!r}")
            return None

        name = part.get("name") or ""
        return StorageCandidate(
            device=part.get("path") or f"/dev/{name}",
            name=name,
            label=part.get("label"),
            filesystem=fstype.lower(),
            size_bytes=int(part.get("size") or 0),
            model=(disk.get("model") or "").strip() or None,
            access_point=mountpoint,
        )

    # Selection

    def select(self, candidates: Sequence[StorageCandidate]) -> StorageCandidate:
        """Pick the destination candidate.

        Raises:
            NoRemovableMediaFound: If there are no candidates
            ValueError: If the chooser returns an index out of range
        """
        if not candidates:
            raise NoRemovableMediaFound(
                "No FAT32 USB drives found",
                hint="Please insert a FAT32-formatted USB drive",
            )

        if len(candidates) == 1:
            return candidates[0]

        index = self.chooser(candidates)
        if not 0 <= index < len(candidates):
            raise ValueError(f"Selection {index} out of range 0-{len(candidates) - 1}")
        return candidates[index]

    # Access points

    def resolve(self, leases: list[AccessPointLease]) -> Path:
        """Return an accessible destination directory on removable media.

        Args:
            leases: Caller-owned lease collection; a lease is appended for the
                access point used, whether pre-existing or created here

        Returns:
            Mount point of the selected partition

        Raises:
            NoRemovableMediaFound: If no matching partition exists
            NoAccessPointAvailable: If every mount slot is taken
            MountFailed: If the mount point cannot be created or mounting fails
        """
        candidate = self.select(self.discover())

        if candidate.is_accessible:
            self.logger.info(
                f"Found USB drive: {candidate.device} mounted at {candidate.access_point}"
            )
            leases.append(
                AccessPointLease(
                    access_point=candidate.access_point,
                    device=candidate.device,
                    was_pre_existing=True,
                )
            )
            return Path(candidate.access_point)

        lease = self._assign_access_point(candidate)
        leases.append(lease)
        return Path(lease.access_point)

    def _slot_taken(self, slot: Path, mount_table: dict[str, str]) -> bool:
        if str(slot) in mount_table:
            return True
        if not slot.exists():
            return False
        # Leftover empty directories from earlier runs are reusable
        return not slot.is_dir() or any(slot.iterdir())

    def next_free_slot(self) -> Path:
        """Return the lowest unused mount point slot.

        Raises:
            NoAccessPointAvailable: If all slots are in use
        """
        mount_table = self.read_mount_table()
        for n in range(self.mount_slots):
            slot = Path(f"{self.mount_base}-{n}")
            if not self._slot_taken(slot, mount_table):
                return slot

        raise NoAccessPointAvailable(
            f"All {self.mount_slots} mount points under {self.mount_base}-* are in use",
            hint="Unmount a previous bios-update mount and try again",
        )

    def _assign_access_point(self, candidate: StorageCandidate) -> AccessPointLease:
        slot = self.next_free_slot()
        created = not slot.exists()
        if created:
            try:
                slot.mkdir(parents=True)
            except OSError as e:
                raise MountFailed(
                    f"Cannot create mount point {slot}: {e}",
                    hint="Check that the mount base directory is writable",
                ) from e

        self.logger.info(f"Mounting {candidate.device} at {slot}...")
        try:
            self.runner.run(["mount", "-t", self.filesystem, candidate.device, str(slot)])
        except RuntimeError as e:
            if created:
                try:
                    slot.rmdir()
                except OSError as rm_error:
                    self.logger.warning(f"Failed to remove mount point {slot}: {rm_error}")
            raise MountFailed(f"Failed to mount {candidate.device}: {e}") from e

        self.logger.info(f"Mounted at: {slot}")
        return AccessPointLease(
            access_point=str(slot),
            device=candidate.device,
            was_pre_existing=False,
            created_directory=created,
        )

    # Teardown

    def release(self, leases: list[AccessPointLease]) -> None:
        """Unmount every access point created by this session.

        Best effort: failures are logged and never raised. Pre-existing
        mounts are left untouched. Released leases are removed from the
        collection so a repeated call does nothing.
        """
        for lease in [lease for lease in leases if not lease.was_pre_existing]:
            leases.remove(lease)
            try:
                self.runner.run(["umount", lease.access_point])
                self.logger.info(f"Unmounted: {lease.access_point}")
            except Exception as e:
                self.logger.warning(f"Failed to unmount {lease.access_point}: {e}")

            if lease.created_directory:
                try:
                    Path(lease.access_point).rmdir()
                except OSError as e:
                    self.logger.warning(
                        f"Failed to remove mount point {lease.access_point}: {e}"
                    )
