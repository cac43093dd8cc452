"""Runtime configuration for the BIOS stager."""

import json
import re
from pathlib import Path
from typing import Optional, Union
import logging

from pydantic import BaseModel, Field, ValidationError, field_validator


DEFAULT_CATALOG_URL = "https://www.asus.com/support/api/product.asmx/GetPDBIOS"


class UpdaterConfig(BaseModel):
    """Settings injected into the session and its services.

    Nothing below the CLI reads the environment; every path and limit
    comes from here.
    """

    scratch_root: Path = Field(
        Path("/tmp/ASUS_BIOS_Update"), description="Session scratch directory"
    )
    mount_base: str = Field(
        "/mnt/bios-update", description="Prefix for mount points created by the stager"
    )
    mount_slots: int = Field(8, ge=1, le=100, description="Mount point slots to scan")
    mounts_file: Path = Field(
        Path("/proc/self/mounts"), description="Kernel mount table"
    )
    catalog_url: str = Field(
        DEFAULT_CATALOG_URL, pattern=r"^https?://.+", description="GetPDBIOS endpoint"
    )
    catalog_site: str = Field("global", description="Catalog 'website' parameter")
    catalog_timeout: float = Field(30.0, gt=0, description="Catalog request timeout")
    supported_vendors: list[str] = Field(
        default_factory=lambda: ["asus"],
        min_length=1,
        description="Case-insensitive manufacturer patterns",
    )
    filesystem: str = Field("vfat", description="Required filesystem on the media")
    transport: str = Field("usb", description="Required block device transport")
    payload_extension: str = Field("CAP", description="Payload file extension")
    log_file: str = Field("./logs/biosstager.log", description="Rotating log file")

    @field_validator("supported_vendors")
    @classmethod
    def patterns_compile(cls, v: list[str]) -> list[str]:
        """Reject vendor patterns that are not valid regular expressions."""
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid vendor pattern {pattern!r}: {e}")
        return v

    @field_validator("payload_extension")
    @classmethod
    def strip_extension_dot(cls, v: str) -> str:
        v = v.lstrip(".")
        if not v:
            raise ValueError("Payload extension must not be empty")
        return v


def load_config(
    path: Optional[Union[str, Path]] = None, **overrides
) -> UpdaterConfig:
    """Load configuration from an optional JSON file.

    Args:
        path: JSON file with UpdaterConfig fields (missing file = defaults)
        **overrides: Values that win over the file, ``None`` values are ignored

    Returns:
        Validated UpdaterConfig

    Raises:
        ValueError: If the file is not valid JSON or fails validation
    """
    logger = logging.getLogger("biosstager.config")
    data: dict = {}

    if path is not None:
        config_path = Path(path)
        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid config JSON in {config_path}: {e}")
            if not isinstance(data, dict):
                raise ValueError(f"Config root must be an object: {config_path}")
            logger.debug(f"Loaded config from {config_path}")
        else:
            logger.debug(f"Config file {config_path} not found, using defaults")

    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return UpdaterConfig(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")
