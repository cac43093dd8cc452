"""MD5 helpers for checking that a staged copy matches its source."""

import hashlib
from pathlib import Path
import logging


def compute_md5(file_path: Path, chunk_size: int = 64 * 1024) -> str:
    """Compute MD5 hash of a file.

    Args:
        file_path: Path to file to hash
        chunk_size: Read buffer size

    Returns:
        32-character hex MD5 hash string

    Raises:
        FileNotFoundError: If file doesn't exist
        OSError: If file read fails
    """
    logger = logging.getLogger("biosstager.verification")
    md5_hash = hashlib.md5()

    try:
        with open(file_path, "rb") as f:
            while chunk := f.read(chunk_size):
                md5_hash.update(chunk)
    except FileNotFoundError:
        logger.error(f"File not found: {file_path}")
        raise
    except OSError as e:
        logger.error(f"Failed to read file {file_path}: {e}")
        raise

    result = md5_hash.hexdigest()
    logger.debug(f"Computed MD5 for {file_path.name}: {result}")
    return result


def files_identical(source: Path, copy: Path) -> bool:
    """Check that ``copy`` has the same size and MD5 as ``source``.

    Returns:
        True if both match, False if ``copy`` is missing or differs
    """
    logger = logging.getLogger("biosstager.verification")

    if not copy.is_file():
        logger.error(f"Copy not found: {copy}")
        return False

    source_size = source.stat().st_size
    copy_size = copy.stat().st_size
    if source_size != copy_size:
        logger.error(
            f"Size mismatch for {copy.name}: expected {source_size}, got {copy_size}"
        )
        return False

    source_md5 = compute_md5(source)
    copy_md5 = compute_md5(copy)
    if source_md5 != copy_md5:
        logger.error(
            f"MD5 mismatch for {copy.name}: expected {source_md5}, got {copy_md5}"
        )
        return False

    logger.info(f"Verified {copy.name} (md5 {copy_md5})")
    return True
