"""Archive download, extraction and payload staging."""

import os
import shutil
import zipfile
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlsplit
import logging

import aiofiles
import httpx

from biosstager.errors import (
    DownloadFailed,
    ExtractionFailed,
    PayloadNotFound,
    StageWriteFailed,
)
from biosstager.models.session import ScratchArea
from biosstager.utils.verification import files_identical


def archive_name_from_url(url: str) -> str:
    """Return the archive file name from a URL path, ignoring any query."""
    name = PurePosixPath(unquote(urlsplit(url).path)).name
    if not name:
        raise DownloadFailed(f"Cannot derive archive name from URL: {url}")
    return name


class AcquisitionPipeline:
    """Downloads the firmware archive and stages its payload on the media."""

    def __init__(
        self,
        payload_extension: str = "CAP",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize acquisition pipeline.

        Args:
            payload_extension: Extension of the payload inside the archive
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.logger = logging.getLogger("biosstager.acquisition")
        self.payload_extension = payload_extension.lstrip(".")
        self.transport = transport
        self.chunk_size = 64 * 1024

    async def download(self, url: str, scratch: ScratchArea) -> Path:
        """Stream the archive into the scratch area.

        Args:
            url: Archive URL from the catalog
            scratch: Session scratch area (archive_path is set on success)

        Returns:
            Path of the downloaded archive

        Raises:
            DownloadFailed: On transport errors, non-2xx status, or an empty file
        """
        target_path = scratch.root / archive_name_from_url(url)
        encoded_url = url.replace(" ", "%20")

        self.logger.info("Downloading BIOS update...")
        self.logger.info(f"URL: {encoded_url}")

        bytes_downloaded = 0
        try:
            # No timeout: the transfer runs to completion or fails outright
            async with httpx.AsyncClient(
                timeout=None, follow_redirects=True, transport=self.transport
            ) as client:
                async with client.stream("GET", encoded_url) as response:
                    response.raise_for_status()
                    async with aiofiles.open(target_path, "wb") as f:
                        async for chunk in response.aiter_bytes(chunk_size=self.chunk_size):
                            await f.write(chunk)
                            bytes_downloaded += len(chunk)
        except httpx.HTTPError as e:
            self.logger.error(f"Download failed: {e}")
            target_path.unlink(missing_ok=True)
            raise DownloadFailed(f"Failed to download BIOS package: {e}") from e
        except OSError as e:
            self.logger.error(f"Download failed: {e}")
            target_path.unlink(missing_ok=True)
            raise DownloadFailed(f"Failed to write {target_path}: {e}") from e

        if not target_path.is_file() or target_path.stat().st_size == 0:
            raise DownloadFailed(f"Downloaded archive is missing or empty: {target_path}")

        self.logger.info(f"Downloaded {bytes_downloaded} bytes to {target_path.name}")
        scratch.archive_path = target_path
        return target_path

    def extract(self, archive_path: Path, scratch: ScratchArea) -> Path:
        """Unpack the archive into a fresh directory of the scratch area.

        Raises:
            ExtractionFailed: On corrupt or unsupported archives, unsafe member paths,
                or an extraction directory that cannot be prepared
        """
        extract_path = scratch.extraction_dir
        self.logger.info("Extracting BIOS package...")
        try:
            if extract_path.exists():
                shutil.rmtree(extract_path)
            extract_path.mkdir(parents=True)
            root = extract_path.resolve()

            with zipfile.ZipFile(archive_path, "r") as zf:
                for member in zf.namelist():
                    target = (extract_path / member).resolve()
                    if target != root and root not in target.parents:
                        raise ExtractionFailed(
                            f"Archive member escapes extraction directory: {member}"
                        )
                zf.extractall(extract_path)
        except zipfile.BadZipFile as e:
            raise ExtractionFailed(f"Invalid ZIP package: {e}") from e
        except (OSError, RuntimeError, NotImplementedError) as e:
            # RuntimeError: encrypted members; NotImplementedError: unsupported compression
            raise ExtractionFailed(f"Failed to extract BIOS package: {e}") from e

        scratch.extraction_root = extract_path
        return extract_path

    def locate_payload(self, extraction_root: Path) -> Path:
        """Find the payload by extension, case-insensitively.

        Traversal is depth-first with directory entries in alphabetical
        order; the first match wins when several files qualify.

        Raises:
            PayloadNotFound: If no file has the payload extension
        """
        suffix = f".{self.payload_extension.lower()}"

        def walk(directory: Path) -> Optional[Path]:
            for entry in sorted(directory.iterdir(), key=lambda p: p.name):
                if entry.is_dir():
                    found = walk(entry)
                    if found is not None:
                        return found
                elif entry.is_file() and entry.name.lower().endswith(suffix):
                    return entry
            return None

        payload = walk(extraction_root)
        if payload is None:
            raise PayloadNotFound(
                f"No .{self.payload_extension} file found in extracted contents"
            )

        self.logger.info(f"Found BIOS file: {payload.name}")
        return payload

    def stage(self, payload_path: Path, destination: Path, version: str) -> Path:
        """Copy the payload byte-for-byte to ``destination/<version>.<ext>``.

        An existing file with that name is deleted first. Bytes go to a hidden
        temp file in the destination that is renamed into place only once
        complete, so a truncated file never appears under the final name.

        Returns:
            Path of the staged file

        Raises:
            StageWriteFailed: If the copy fails or does not match the payload
        """
        staged_path = destination / f"{version}.{self.payload_extension}"
        tmp_path = destination / f".{staged_path.name}.tmp"

        try:
            if staged_path.exists():
                self.logger.warning(f"Removing existing file: {staged_path}")
                staged_path.unlink()

            with open(payload_path, "rb") as src_file, open(tmp_path, "wb") as tmp_file:
                shutil.copyfileobj(src_file, tmp_file)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())

            os.replace(tmp_path, staged_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            self.logger.error(f"Failed to copy BIOS file to {staged_path}: {e}")
            raise StageWriteFailed(f"Failed to copy BIOS file to {staged_path}: {e}") from e

        if not files_identical(payload_path, staged_path):
            try:
                staged_path.unlink(missing_ok=True)
            except OSError as e:
                self.logger.warning(f"Failed to remove mismatched copy {staged_path}: {e}")
            raise StageWriteFailed(
                f"Staged file {staged_path} does not match {payload_path.name}"
            )

        self.logger.info(f"BIOS file ready: {staged_path}")
        return staged_path
