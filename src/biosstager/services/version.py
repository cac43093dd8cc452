"""Firmware version token extraction and comparison."""

import re

from biosstager.errors import VersionFormatError


# First run of four consecutive digits
_VERSION_TOKEN = re.compile(r"\d{4}")


def extract_version(raw: str) -> str:
    """Extract the first 4-digit version token from a firmware string.

    Example:
        >>> extract_version("ASUS PRIME B760M-K D4 BIOS 1825")
        '1825'

    Raises:
        VersionFormatError: If no 4-digit run exists
    """
    match = _VERSION_TOKEN.search(raw or "")
    if match is None:
        raise VersionFormatError(
            f"Could not parse version from {raw!r}",
            hint="Expected a 4-digit firmware version number",
        )
    return match.group(0)


def needs_update(current: str, latest: str) -> bool:
    """Return True iff ``latest`` is numerically greater than ``current``.

    Equal versions count as up to date.
    """
    return int(latest) > int(current)
