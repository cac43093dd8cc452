"""Typed errors raised by the staging pipeline.

Every error is fatal to the running session. Callers catch
``BiosStagerError`` and report ``code`` plus ``hint`` to the operator.
"""

from typing import Optional


class BiosStagerError(Exception):
    """Base error for all staging failures."""

    code = "BIOS_STAGER_ERROR"

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


# Platform


class PlatformError(BiosStagerError):
    """Board identity or firmware string could not be used."""


class DetectionFailed(PlatformError):
    code = "DETECTION_FAILED"


class UnsupportedBoard(PlatformError):
    code = "UNSUPPORTED_BOARD"


class VersionFormatError(PlatformError):
    code = "VERSION_FORMAT"


# Catalog


class CatalogError(BiosStagerError):
    """Vendor catalog query failed."""


class CatalogUnavailable(CatalogError):
    code = "CATALOG_UNAVAILABLE"


class CatalogEmpty(CatalogError):
    code = "CATALOG_EMPTY"


class CatalogMalformed(CatalogError):
    code = "CATALOG_MALFORMED"


# Media


class MediaError(BiosStagerError):
    """No usable destination on removable media."""


class NoRemovableMediaFound(MediaError):
    code = "NO_REMOVABLE_MEDIA"


class NoAccessPointAvailable(MediaError):
    code = "NO_ACCESS_POINT"


class MountFailed(MediaError):
    code = "MOUNT_FAILED"


# Acquisition


class AcquisitionError(BiosStagerError):
    """Download, extraction or staging of the payload failed."""


class DownloadFailed(AcquisitionError):
    code = "DOWNLOAD_FAILED"


class ExtractionFailed(AcquisitionError):
    code = "EXTRACTION_FAILED"


class PayloadNotFound(AcquisitionError):
    code = "PAYLOAD_NOT_FOUND"


class StageWriteFailed(AcquisitionError):
    code = "STAGE_WRITE_FAILED"


class ScratchAreaError(AcquisitionError):
    code = "SCRATCH_UNAVAILABLE"
