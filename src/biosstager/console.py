"""Interactive console prompts for the operator."""

from typing import Callable, Sequence

from biosstager.models.media import StorageCandidate
from biosstager.models.session import StagingResult


def choose_candidate(
    candidates: Sequence[StorageCandidate],
    input_func: Callable[[str], str] = input,
    output: Callable[[str], None] = print,
) -> int:
    """Ask the operator to pick a drive by 1-based number.

    Blocks until a valid number is entered.

    Returns:
        0-based index into ``candidates``
    """
    output("Multiple FAT32 USB drives found:")
    for i, candidate in enumerate(candidates, start=1):
        output(f"  {i}. {candidate.describe()}")

    while True:
        selection = input_func(f"Select drive (1-{len(candidates)}): ").strip()
        if selection.isdigit() and 1 <= int(selection) <= len(candidates):
            return int(selection) - 1
        output("Invalid selection")


def confirm(
    question: str,
    input_func: Callable[[str], str] = input,
) -> bool:
    """Return True only for an explicit Y/y answer."""
    return input_func(f"{question} (Y/N) ").strip().lower() == "y"


def flash_instructions(result: StagingResult) -> list[str]:
    """Steps for applying a staged BIOS file with ASUS EZ Flash 3."""
    name = result.staged_path.name if result.staged_path else "the staged"
    return [
        "BIOS Update Ready!",
        f"BIOS file: {result.staged_path}",
        "",
        "To apply the update:",
        "  1. Restart your computer",
        "  2. Enter BIOS Setup (press F2 or Del during boot)",
        "  3. Go to Tool -> ASUS EZ Flash 3 Utility",
        f"  4. Select the {name} file from the USB drive",
        "  5. Follow the on-screen instructions",
        "",
        "WARNING: Do not power off during BIOS update!",
    ]
