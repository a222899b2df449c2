from __future__ import annotations

from dataclasses import dataclass
from typing import IO
from xml.etree import ElementTree as ET

from openpyxl.styles.numbers import BUILTIN_FORMATS

from .container import STYLES_CONTENT_TYPE, XlsxContainer
from .errors import WorkbookOpenError
from .strings import MAIN_NS

"""Number format lookup from styles.xml.

Only ``numFmts`` and ``cellXfs`` are read; fonts, fills and borders are not
needed to render cell values.
"""

__all__ = [
    "NumberFormat",
    "RESERVED_FORMATS",
    "StylesTable",
]

_NUM_FMT_TAG = f"{{{MAIN_NS}}}numFmt"
_CELL_XFS_TAG = f"{{{MAIN_NS}}}cellXfs"
_XF_TAG = f"{{{MAIN_NS}}}xf"

# BUILTIN_FORMATS にないロケール予約 ID (23-36, 50-58)。
# ja-JP の日付/時刻書式を西暦表記で割り当て、23-26 は General 扱い
_JA_YMD = "yyyy/m/d"
_JA_YMD_KANJI = 'yyyy"年"m"月"d"日"'
_JA_YM_KANJI = 'yyyy"年"m"月"'
_JA_MD_KANJI = 'm"月"d"日"'
RESERVED_FORMATS: dict[int, str] = {
    **dict.fromkeys(range(23, 27), "General"),
    **dict.fromkeys((27, 36, 50, 57), _JA_YMD),
    **dict.fromkeys((28, 29, 31, 51, 54, 58), _JA_YMD_KANJI),
    30: "m/d/yy",
    32: 'h"時"mm"分"',
    33: 'h"時"mm"分"ss"秒"',
    **dict.fromkeys((34, 52, 55), _JA_YM_KANJI),
    **dict.fromkeys((35, 53, 56), _JA_MD_KANJI),
}


@dataclass(frozen=True)
class NumberFormat:
    index: int
    format_string: str


class StylesTable:
    """Resolves a cell's ``s`` attribute to its number format."""

    def __init__(self, custom_formats: dict[int, str] | None = None, cell_xfs: list[int] | None = None) -> None:
        self.custom_formats = dict(custom_formats or {})
        self.cell_xfs = list(cell_xfs or [])

    @classmethod
    def load(cls, container: XlsxContainer) -> StylesTable:
        stream = container.open_first(STYLES_CONTENT_TYPE)
        if stream is None:
            return cls()
        with stream:
            return cls.from_stream(stream)

    @classmethod
    def from_stream(cls, stream: IO[bytes]) -> StylesTable:
        try:
            root = ET.parse(stream).getroot()
        except ET.ParseError as e:
            raise WorkbookOpenError(f"invalid styles part: {e}") from e

        custom: dict[int, str] = {}
        for fmt in root.iter(_NUM_FMT_TAG):
            try:
                custom[int(fmt.get("numFmtId", ""))] = fmt.get("formatCode", "")
            except ValueError:
                continue

        xfs: list[int] = []
        cell_xfs = root.find(_CELL_XFS_TAG)
        if cell_xfs is not None:
            for xf in cell_xfs.findall(_XF_TAG):
                try:
                    xfs.append(int(xf.get("numFmtId", "0")))
                except ValueError:
                    xfs.append(0)
        return cls(custom, xfs)

    def number_format(self, style_index: int | None) -> NumberFormat | None:
        """Return the number format of a cell style.

        A cell without ``s`` uses style 0. Returns None when the workbook has
        no styles or the index is unknown.
        """
        if not self.cell_xfs:
            return None
        idx = 0 if style_index is None else style_index
        if idx < 0 or idx >= len(self.cell_xfs):
            return None
        fmt_id = self.cell_xfs[idx]
        fmt = self.custom_formats.get(fmt_id)
        if fmt is None:
            fmt = BUILTIN_FORMATS.get(fmt_id) or RESERVED_FORMATS.get(fmt_id)
        if fmt is None:
            return None
        return NumberFormat(index=fmt_id, format_string=fmt)
