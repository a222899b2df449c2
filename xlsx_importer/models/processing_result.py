from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import datetime

"""Processing result models for the streaming xlsx importer.

Aggregated counters for the SUMMARY line plus per-file statistics, including
batch timing collected from the INSERT batches.
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file processing statistics."""
    file_name: str  # ファイル名
    status: str  # success/failed
    inserted_rows: int  # 成功時行数
    elapsed_seconds: float  # ファイル処理時間
    total_batches: int = 0  # 総バッチ数
    avg_batch_seconds: float = 0.0  # 平均バッチ時間
    p95_batch_seconds: float = 0.0  # p95 バッチ時間


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of one import run (source of the SUMMARY line)."""
    success_files: int  # 成功ファイル数
    failed_files: int  # 失敗ファイル数
    total_inserted_rows: int  # 総挿入行数
    skipped_sheets: int  # 存在しないシート数
    start_time: datetime  # 全体開始
    end_time: datetime  # 全体終了
    elapsed_seconds: float  # end - start
    throughput_rows_per_sec: float  # total_inserted / elapsed
    file_stats: list[FileStat] | None = None  # ファイル詳細


class BatchStatsAccumulator:
    """Accumulates batch timings reported by ``batch_insert``."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Calculate batch statistics.

        Returns:
            tuple: (total_batches, avg_batch_seconds, p95_batch_seconds)
        """
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)
        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            # 20 分位の 19 番目 = p95
            p95_batch_seconds = statistics.quantiles(self.batch_times, n=20, method="inclusive")[18]
        return (total_batches, avg_batch_seconds, p95_batch_seconds)
