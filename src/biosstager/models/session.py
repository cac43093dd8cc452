"""Scratch area and session result models."""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field

from biosstager.models.firmware import BoardIdentity
from biosstager.models.status import Outcome


class ScratchArea(BaseModel):
    """Session-private working tree under the configured scratch root.

    Recreated empty at session start, removed at session end.
    """

    root: Path = Field(..., description="Scratch root directory")
    archive_path: Optional[Path] = Field(None, description="Downloaded archive")
    extraction_root: Optional[Path] = Field(None, description="Unpacked archive tree")

    @property
    def extraction_dir(self) -> Path:
        return self.root / "extracted"


class StagingResult(BaseModel):
    """Outcome of a completed session."""

    outcome: Outcome = Field(..., description="up_to_date or staged")
    current_version: str = Field(..., description="Installed version token")
    latest_version: Optional[str] = Field(None, description="Catalog version token")
    staged_path: Optional[Path] = Field(None, description="Staged payload on the media")
    release_date: Optional[str] = Field(None, description="Catalog release date")
    board: Optional[BoardIdentity] = Field(None, description="Detected board")
