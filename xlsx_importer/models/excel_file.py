from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from .sheet_process import SheetProcess

"""ExcelFile domain model and FileStatus enum.

ExcelFile is the processing context of one source workbook; its status moves
pending -> (success | failed); a result is built once the file is done.
"""


class FileStatus(Enum):
    """Status of one source workbook."""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ExcelFile:
    """Processing outcome for a single Excel file."""
    path: Path
    name: str
    sheets: list[SheetProcess] = field(default_factory=list)
    start_time: datetime | None = None  # Processing start (UTC)
    end_time: datetime | None = None  # Processing end (UTC)
    status: FileStatus = FileStatus.PENDING
    total_rows: int = 0  # 挿入行数合計
    skipped_sheets: int = 0  # ブックに存在しないシート数
    error: str | None = None  # Failure reason summary
