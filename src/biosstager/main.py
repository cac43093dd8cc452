"""Command line entry point for the ASUS BIOS stager."""

import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import Optional, Sequence

from biosstager import console
from biosstager.errors import BiosStagerError
from biosstager.models.config import load_config
from biosstager.models.status import Outcome
from biosstager.services.platform import PlatformProbe
from biosstager.services.process import CommandRunner
from biosstager.services.session import StagingSession
from biosstager.utils.logging import setup_logger


REQUIRED_TOOLS = ("dmidecode", "lsblk", "mount", "umount")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bios-stager",
        description=(
            "Check for an ASUS BIOS update and stage the .CAP file on a FAT32 "
            "USB drive for EZ Flash."
        ),
    )
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--scratch-dir", help="Scratch directory for downloads")
    parser.add_argument("--mount-base", help="Prefix for mount points created here")
    parser.add_argument("--log-file", help="Rotating log file path")
    parser.add_argument(
        "--no-reboot-prompt",
        action="store_true",
        help="Do not offer to restart after staging",
    )
    parser.add_argument(
        "--skip-root-check",
        action="store_true",
        help="Run without root privileges (dmidecode and mount will likely fail)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _raise_system_exit(signum, frame):
    # SIGTERM unwinds like Ctrl+C so session cleanup still runs
    raise SystemExit(EXIT_INTERRUPTED)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one staging session and return the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            args.config,
            scratch_root=args.scratch_dir,
            mount_base=args.mount_base,
            log_file=args.log_file,
        )
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILED

    logger = setup_logger(
        "biosstager",
        config.log_file,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )
    logger.info("ASUS BIOS Updater starting...")

    if not args.skip_root_check and os.geteuid() != 0:
        logger.error("This tool must be run as root (for dmidecode and mount access)")
        return EXIT_FAILED

    runner = CommandRunner()
    missing = runner.missing_tools(REQUIRED_TOOLS)
    if missing:
        logger.error(f"Missing dependencies: {', '.join(missing)}")
        return EXIT_FAILED

    platform = PlatformProbe(supported_vendors=config.supported_vendors, runner=runner)
    session = StagingSession(config=config, platform=platform, runner=runner)

    signal.signal(signal.SIGTERM, _raise_system_exit)
    try:
        result = asyncio.run(session.run())
    except BiosStagerError as e:
        logger.error(str(e))
        if e.hint:
            logger.error(e.hint)
        return EXIT_FAILED
    except KeyboardInterrupt:
        logger.warning("Interrupted, temporary files and mounts were cleaned up")
        return EXIT_INTERRUPTED

    if result.outcome == Outcome.UP_TO_DATE:
        print("Your BIOS is already up to date!")
        print(f"Current: {result.current_version}, Latest: {result.latest_version}")
        return EXIT_OK

    for line in console.flash_instructions(result):
        print(line)

    if not args.no_reboot_prompt:
        if console.confirm("Restart now to apply BIOS update?"):
            try:
                platform.reboot()
            except RuntimeError as e:
                logger.error(f"Failed to restart: {e}")
                return EXIT_FAILED
        else:
            print("Restart when ready to apply the BIOS update.")

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
