from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm

"""Progress display with tqdm (TTY only).

One tqdm bar over the source files; sheet mappings inside a file are shown
as plain status lines. Both are silent when stdout is not a TTY (CI, pipes).
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
    "SheetProgressIndicator",
]


def is_tty_enabled() -> bool:
    """Whether progress output should be drawn.

    Returns:
        True when stdout is attached to a terminal
    """
    return sys.stdout.isatty()


class ProgressTracker:
    """File-level progress bar.

    Without a TTY no tqdm instance is created and every method is a no-op,
    so log output in CI stays free of control sequences.
    """

    def __init__(self, total_files: int, *, description: str = "Processing files") -> None:
        """Create the tracker.

        Args:
            total_files: Number of workbooks in this run
            description: Base label of the bar
        """
        self.total_files = total_files
        self.description = description
        self.current_file = 0
        self.enabled = is_tty_enabled()
        self.pbar: tqdm[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_files,
                desc=description,
                unit="file",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_file(self, file_path: Path) -> None:
        """Mark the start of a workbook.

        Args:
            file_path: Workbook being imported; its name is shown in the label
        """
        self.current_file += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({file_path.name})")

    def finish_file(self, success: bool = True) -> None:
        """Advance the bar by one workbook.

        Args:
            success: Outcome of the workbook (failures advance the bar too)
        """
        if self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        """Show running counters (rows, failed, ...) after the bar.

        Args:
            **kwargs: Label / value pairs passed to tqdm
        """
        if self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        """Close the bar; safe to call more than once."""
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class SheetProgressIndicator:
    """Status line per sheet mapping within one file.

    Sheets are read in one streaming pass each, so a line per mapping is
    enough; no nested bar.
    """

    def __init__(self, file_name: str, total_sheets: int) -> None:
        """Create the indicator.

        Args:
            file_name: Workbook the sheet mappings belong to
            total_sheets: Number of sheet mappings applied to the workbook
        """
        self.file_name = file_name
        self.total_sheets = total_sheets
        self.current_sheet = 0
        self.enabled = is_tty_enabled()

    def start_sheet(self, mapping_name: str, sheet_index: int) -> None:
        """Print the head of a status line.

        Args:
            mapping_name: Sheet mapping name from the configuration
            sheet_index: 0-based sheet position (shown 1-based)
        """
        self.current_sheet += 1
        if self.enabled:
            print(f"  Sheet {self.current_sheet}/{self.total_sheets}: {mapping_name} (#{sheet_index + 1})", end="", flush=True)

    def finish_sheet(self, success: bool = True, rows_processed: int = 0) -> None:
        """Complete the status line.

        Args:
            success: Whether the sheet mapping was imported
            rows_processed: Rows delivered to the table (omitted when 0)
        """
        if self.enabled:
            status = "✓" if success else "✗"
            if rows_processed > 0:
                print(f" - {rows_processed} rows {status}")
            else:
                print(f" {status}")
