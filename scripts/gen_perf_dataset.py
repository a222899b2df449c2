#!/usr/bin/env python3
"""Generate large workbooks for streaming-reader benchmarks.

Layout of every generated sheet:
- Row 1: Title row
- Row 2: Header row
- Row 3+: Data rows (numbers with formats, dates, booleans, text, sparse blanks)

The workbook is written with openpyxl in write-only mode so the generator
itself never holds the whole sheet in memory. ``--bench`` reads the file back
through ``read_data_rows`` in mock mode and prints rows/s.
"""
from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

import numpy as np
import pandas as pd
from openpyxl import Workbook
from openpyxl.cell import WriteOnlyCell

CATEGORIES = ["Electronics", "Clothing", "Books", "Food", "Sports", "Home"]
CHUNK_ROWS = 10_000

# 列種別ごとの表示書式
NUMBER_FORMATS = {
    "amount": "#,##0.00",
    "ratio": "0.0%",
    "created_date": "yyyy-mm-dd",
}


def generate_chunk(start: int, rows: int, cols: int, rng: np.random.Generator, blank_ratio: float) -> pd.DataFrame:
    """Build ``rows`` synthetic rows starting at id ``start + 1``.

    The first columns are fixed (id, name, category, amount, ratio, active,
    created_date); extra columns are integer quantities.
    """
    data: dict[str, object] = {
        "id": np.arange(start + 1, start + rows + 1),
        "name": [f"Item_{n}" for n in rng.integers(1000, 9999, rows)],
        "category": rng.choice(CATEGORIES, rows),
        "amount": np.round(rng.uniform(0.01, 9999.99, rows), 2),
        "ratio": np.round(rng.uniform(0, 1, rows), 3),
        "active": rng.choice([True, False], rows),
        "created_date": pd.Timestamp("2023-01-01") + pd.to_timedelta(rng.integers(0, 730, rows), unit="D"),
    }
    for i in range(len(data), cols):
        data[f"quantity_{i}"] = rng.integers(1, 1000, rows)
    df = pd.DataFrame(data).iloc[:, :cols]

    if blank_ratio > 0 and cols > 1:
        # id 列以外をランダムに空セル化
        mask = rng.random((rows, cols - 1)) < blank_ratio
        df.iloc[:, 1:] = df.iloc[:, 1:].astype(object).mask(mask)
    return df


def _cell(ws, column: str, value: object) -> object:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    fmt = NUMBER_FORMATS.get(column)
    if fmt is None:
        return value
    cell = WriteOnlyCell(ws, value=value)
    cell.number_format = fmt
    return cell


def create_workbook(
    output_path: Path,
    rows: int,
    cols: int,
    sheets: list[str],
    title: str = "Performance Test Data",
    seed: int = 42,
    blank_ratio: float = 0.0,
) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook(write_only=True)
    for sheet_name in sheets:
        rng = np.random.default_rng(seed)
        ws = wb.create_sheet(sheet_name)
        ws.append([title])
        header_written = False
        for start in range(0, rows, CHUNK_ROWS):
            df = generate_chunk(start, min(CHUNK_ROWS, rows - start), cols, rng, blank_ratio)
            if not header_written:
                ws.append(list(df.columns))
                header_written = True
            for record in df.itertuples(index=False, name=None):
                ws.append([_cell(ws, c, v) for c, v in zip(df.columns, record)])
    wb.save(output_path)

    print(f"Created Excel file: {output_path}")
    print(f"  Sheets: {len(sheets)} ({', '.join(sheets)})")
    print(f"  Rows per sheet: {rows:,} (+ title and header rows)")
    print(f"  Columns per sheet: {cols}")
    print("  Mapping: header_row: 1, start_row: 2")


def bench(path: Path, sheet_count: int) -> None:
    from xlsx_importer.db.batch_insert import PostgresRowConsumer
    from xlsx_importer.excel.reader import read_data_rows, read_header_row

    for sheet_index in range(sheet_count):
        start = time.perf_counter()
        header = read_header_row(path, sheet_index, 1)
        columns = {c.index: c.name for c in header if c is not None}
        consumer = PostgresRowConsumer(None, "bench", columns, page_size=5000)
        delivered = read_data_rows(path, sheet_index, 2, consumer, lambda c: True)
        elapsed = time.perf_counter() - start
        rps = delivered / elapsed if elapsed > 0 else 0.0
        print(f"  sheet #{sheet_index + 1}: rows={delivered:,} elapsed_sec={elapsed:.2f} throughput_rps={rps:,.0f}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic xlsx workbooks for streaming benchmarks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/perf.xlsx
  %(prog)s data/large.xlsx --rows 500000 --cols 12 --blank-ratio 0.1
  %(prog)s data/multi.xlsx --rows 25000 --sheets Sheet1 Sheet2 --bench
        """,
    )
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--rows", type=int, default=50_000, help="Data rows per sheet (default: 50,000)")
    parser.add_argument("--cols", type=int, default=10, help="Columns per sheet (default: 10)")
    parser.add_argument("--sheets", nargs="+", default=["Sheet1"], help="Sheet names (default: Sheet1)")
    parser.add_argument("--title", default="Performance Test Data", help="Title row text")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--blank-ratio", type=float, default=0.0, help="Share of blank cells, 0..1 (default: 0)")
    parser.add_argument("--bench", action="store_true", help="Read the workbook back and print throughput")
    parser.add_argument("--dry-run", action="store_true", help="Show the plan without writing files")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if args.cols <= 0:
        print("Error: --cols must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.blank_ratio < 1:
        print("Error: --blank-ratio must be in [0, 1)", file=sys.stderr)
        return 1

    total_cells = len(args.sheets) * args.rows * args.cols
    print("Dataset generation plan:")
    print(f"  Output file: {args.output}")
    print(f"  Sheets: {len(args.sheets)} ({', '.join(args.sheets)})")
    print(f"  Rows per sheet: {args.rows:,}")
    print(f"  Columns per sheet: {args.cols}")
    print(f"  Total data cells: {total_cells:,}")
    print(f"  Random seed: {args.seed}")
    if args.dry_run:
        print("\n[DRY RUN] Would generate files but not creating them.")
        return 0

    try:
        create_workbook(
            args.output, args.rows, args.cols, args.sheets, args.title, args.seed, args.blank_ratio
        )
    except OSError as e:
        print(f"\nError generating dataset: {e}", file=sys.stderr)
        return 1

    if args.bench:
        print("\nStreaming read (mock mode):")
        bench(args.output, len(args.sheets))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
