from __future__ import annotations

import json
from pathlib import Path

from xlsx_importer.excel.errors import RowProcessingError
from xlsx_importer.logging.error_log import ErrorLogBuffer, record_for_exception
from xlsx_importer.models.error_record import ErrorRecord

"""Error log contract: one JSON object per line with a fixed key set and types."""

SCHEMA = {
    "timestamp": str,
    "file": str,
    "mapping": str,
    "sheet": int,
    "row": int,
    "error_type": str,
    "message": str,
}


def test_error_log_lines_follow_schema(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("a.xlsx", "TRANSACTION_BEGIN_ERROR", "connection closed"))
    buf.append(record_for_exception("b.xlsx", RowProcessingError(41, 2), mapping="Orders", sheet=3))
    path = buf.flush()
    assert path is not None

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    for line in lines:
        obj = json.loads(line)
        assert set(obj) == set(SCHEMA)
        for key, typ in SCHEMA.items():
            assert isinstance(obj[key], typ), key
        assert obj["error_type"] == obj["error_type"].upper()

    first, second = (json.loads(x) for x in lines)
    # 位置不明は -1
    assert (first["sheet"], first["row"]) == (-1, -1)
    assert (second["sheet"], second["row"]) == (3, 42)
