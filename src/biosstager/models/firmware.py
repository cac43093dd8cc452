"""Board identity, firmware record and vendor catalog response models."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class BoardIdentity(BaseModel):
    """Motherboard identity read once per session from DMI tables."""

    model_config = ConfigDict(frozen=True)

    manufacturer: str = Field(..., min_length=1, description="Baseboard manufacturer")
    product: str = Field(
        ..., min_length=1, description="Baseboard product name (catalog lookup key)"
    )


class FirmwareRecord(BaseModel):
    """Latest firmware metadata returned by the vendor catalog."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(..., min_length=1, description="Raw version string, e.g. '1900'")
    download_url: str = Field(..., min_length=1, description="Archive download URL")
    release_date: Optional[str] = Field(None, description="Release date as published")
    title: Optional[str] = Field(None, description="Opaque catalog title")
    description: Optional[str] = Field(None, description="Opaque catalog description")


# Catalog wire format:
# {"Result": {"Obj": [{"Files": [{"Version", "DownloadUrl": {"Global"}, ...}]}]}}


class CatalogDownloadUrl(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    global_url: Optional[str] = Field(None, alias="Global")


class CatalogFile(BaseModel):
    # Version may arrive as a JSON number
    model_config = ConfigDict(
        extra="ignore", populate_by_name=True, coerce_numbers_to_str=True
    )

    version: Optional[str] = Field(None, alias="Version")
    download_url: Optional[CatalogDownloadUrl] = Field(None, alias="DownloadUrl")
    release_date: Optional[str] = Field(None, alias="ReleaseDate")
    title: Optional[str] = Field(None, alias="Title")
    description: Optional[str] = Field(None, alias="Description")


class CatalogGroup(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    files: Optional[list[CatalogFile]] = Field(None, alias="Files")


class CatalogResult(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    obj: Optional[list[CatalogGroup]] = Field(None, alias="Obj")


class CatalogResponse(BaseModel):
    """Top-level GetPDBIOS response. Only ``Obj[0].Files[0]`` is consumed."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    result: Optional[CatalogResult] = Field(None, alias="Result")

    def first_file(self) -> Optional[CatalogFile]:
        """Return the latest firmware entry, or None when the catalog is empty."""
        if self.result is None or not self.result.obj:
            return None
        files = self.result.obj[0].files
        if not files:
            return None
        return files[0]
