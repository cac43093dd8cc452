"""Board identity and firmware string probing via dmidecode."""

import re
from typing import Optional, Sequence
import logging

from biosstager.errors import DetectionFailed, UnsupportedBoard
from biosstager.models.firmware import BoardIdentity
from biosstager.services.process import CommandRunner


def is_supported_vendor(manufacturer: str, patterns: Sequence[str]) -> bool:
    """Check a manufacturer string against case-insensitive vendor patterns."""
    return any(re.search(p, manufacturer, re.IGNORECASE) for p in patterns)


class PlatformProbe:
    """Reads DMI strings and performs host-level actions."""

    def __init__(
        self,
        supported_vendors: Sequence[str] = ("asus",),
        runner: Optional[CommandRunner] = None,
    ):
        """Initialize platform probe.

        Args:
            supported_vendors: Manufacturer patterns accepted by board_identity()
            runner: CommandRunner instance (default runner if None)
        """
        self.logger = logging.getLogger("biosstager.platform")
        self.supported_vendors = list(supported_vendors)
        self.runner = runner or CommandRunner()

    def _dmi_string(self, keyword: str) -> str:
        try:
            result = self.runner.run(["dmidecode", "-s", keyword])
        except RuntimeError as e:
            raise DetectionFailed(
                f"dmidecode -s {keyword} failed: {e}",
                hint="Run as root and make sure dmidecode is installed",
            ) from e

        # dmidecode prints comment lines for some firmware quirks
        lines = [
            line.strip()
            for line in result.stdout.splitlines()
            if line.strip() and not line.startswith("#")
        ]
        return lines[0] if lines else ""

    def board_identity(self) -> BoardIdentity:
        """Detect the motherboard and check it is from a supported vendor.

        Raises:
            DetectionFailed: If manufacturer or product cannot be read
            UnsupportedBoard: If the manufacturer matches no vendor pattern
        """
        manufacturer = self._dmi_string("baseboard-manufacturer")
        product = self._dmi_string("baseboard-product-name")

        if not manufacturer or not product:
            raise DetectionFailed(
                "Failed to detect motherboard information",
                hint="dmidecode returned an empty baseboard manufacturer or product",
            )

        self.logger.info(f"Detected manufacturer: {manufacturer}")
        self.logger.info(f"Detected product: {product}")

        if not is_supported_vendor(manufacturer, self.supported_vendors):
            raise UnsupportedBoard(
                f"Unsupported manufacturer: {manufacturer}",
                hint="Only ASUS motherboards are supported",
            )

        return BoardIdentity(manufacturer=manufacturer, product=product)

    def firmware_string(self) -> str:
        """Return the raw installed BIOS version string."""
        raw = self._dmi_string("bios-version")
        self.logger.info(f"Current BIOS string: {raw}")
        return raw

    def reboot(self) -> None:
        """Reboot the host to enter the firmware flash utility.

        Raises:
            RuntimeError: If the reboot command fails
        """
        self.logger.warning("Rebooting system...")
        self.runner.run(["systemctl", "reboot"])
