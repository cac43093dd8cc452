"""Storage candidate and access point lease models."""

from typing import Optional
from pydantic import BaseModel, Field


class StorageCandidate(BaseModel):
    """One discovered partition on removable media, mounted or not."""

    device: str = Field(..., description="Block device path, e.g. /dev/sdb1")
    name: str = Field(..., description="Kernel name, e.g. sdb1")
    label: Optional[str] = Field(None, description="Filesystem label")
    filesystem: str = Field(..., description="Filesystem type, e.g. vfat")
    size_bytes: int = Field(default=0, ge=0, description="Partition size")
    model: Optional[str] = Field(None, description="Model of the parent disk")
    access_point: Optional[str] = Field(
        None, description="Mount point if the partition is already mounted"
    )

    @property
    def is_accessible(self) -> bool:
        return self.access_point is not None

    def describe(self) -> str:
        """One-line summary for selection prompts and logs."""
        label = self.label or "NO LABEL"
        model = f" {self.model}" if self.model else ""
        status = (
            f"mounted at {self.access_point}" if self.access_point else "not mounted"
        )
        return (
            f"{label} ({self.device}{model}, {format_size(self.size_bytes)}, {status})"
        )


class AccessPointLease(BaseModel):
    """Session-scoped record of an access point used as staging destination.

    Only leases with ``was_pre_existing`` False are torn down at cleanup;
    mounts set up by the operator are never touched.
    """

    access_point: str = Field(..., description="Mount point path")
    device: str = Field(..., description="Block device bound to the access point")
    was_pre_existing: bool = Field(..., description="Mounted before this session")
    created_directory: bool = Field(
        default=False, description="Mount point directory was created by this session"
    )


def format_size(size_bytes: int) -> str:
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if size < 1024 or unit == "TB":
            return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= 1024
    return f"{size_bytes} B"
