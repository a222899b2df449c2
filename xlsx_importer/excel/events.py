from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import IO
from xml.etree import ElementTree as ET

from openpyxl.utils.cell import get_column_letter

from .address import parse_cell_reference
from .cells import CellType, parse_number
from .errors import UnresolvedStringIndexError, WorkbookOpenError
from .formatting import format_number
from .strings import MAIN_NS, SharedStringTable, collect_text
from .styles import StylesTable

"""Cell event source: a forward-only scan over one worksheet part.

``iter_sheet_events`` turns ``<sheetData>`` into RowStart / CellEvent / RowEnd
events. Each ``<row>`` element is dropped from the tree once its RowEnd has
been produced, so memory is bounded by the widest row, not the sheet size.

The generator is single-pass. Stopping early (``close()`` or simply not
iterating further) abandons the rest of the stream without reading it.
"""

__all__ = [
    "RowStart",
    "CellEvent",
    "RowEnd",
    "SheetEvent",
    "iter_sheet_events",
]

_SHEET_DATA_TAG = f"{{{MAIN_NS}}}sheetData"
_ROW_TAG = f"{{{MAIN_NS}}}row"
_CELL_TAG = f"{{{MAIN_NS}}}c"
_VALUE_TAG = f"{{{MAIN_NS}}}v"
_INLINE_STR_TAG = f"{{{MAIN_NS}}}is"

_TYPE_TAGS = {
    "b": CellType.BOOLEAN,
    "e": CellType.ERROR,
    "str": CellType.FORMULA,
    "s": CellType.STRING,
    "inlineStr": CellType.STRING,
    "d": CellType.STRING,
}


@dataclass(frozen=True)
class RowStart:
    row: int  # 0-based


@dataclass(frozen=True)
class CellEvent:
    reference: str
    raw_value: str | None
    formatted_value: str | None
    cell_type: CellType
    format_string: str | None = None


@dataclass(frozen=True)
class RowEnd:
    row: int  # 0-based


SheetEvent = RowStart | CellEvent | RowEnd


def _resolve_shared(raw: str, strings: SharedStringTable) -> str:
    try:
        index = int(raw)
    except ValueError as e:
        raise UnresolvedStringIndexError(f"shared string index is not a number: {raw!r}") from e
    return strings.get(index)


def _build_cell_event(
    elem: ET.Element, reference: str, strings: SharedStringTable, styles: StylesTable | None
) -> CellEvent:
    t = elem.get("t", "n")
    value_el = elem.find(_VALUE_TAG)
    raw = value_el.text if value_el is not None else None

    if t == "inlineStr":
        is_el = elem.find(_INLINE_STR_TAG)
        if is_el is not None:
            raw = collect_text(is_el)

    if raw is None:
        return CellEvent(reference, None, None, CellType.BLANK)

    cell_type = _TYPE_TAGS.get(t, CellType.NUMERIC)
    if cell_type is CellType.BOOLEAN:
        return CellEvent(reference, raw, "TRUE" if raw == "1" else "FALSE", cell_type)
    if cell_type is CellType.ERROR:
        return CellEvent(reference, raw, f"ERROR:{raw}", cell_type)
    if cell_type is CellType.FORMULA:
        return CellEvent(reference, raw, raw, cell_type)
    if cell_type is CellType.STRING:
        text = _resolve_shared(raw, strings) if t == "s" else raw
        return CellEvent(reference, text, text, cell_type)

    # NUMERIC: 書式があれば表示値を生成
    number_format = None
    if styles is not None:
        style = elem.get("s")
        number_format = styles.number_format(int(style) if style and style.isdigit() else None)
    if number_format is None:
        return CellEvent(reference, raw, raw, cell_type)
    try:
        formatted = format_number(parse_number(raw), number_format.format_string)
    except (ValueError, OverflowError):
        # 数値として解釈できない raw は分類側でエラーにする
        formatted = raw
    return CellEvent(reference, raw, formatted, cell_type, number_format.format_string)


def iter_sheet_events(
    source: IO[bytes],
    strings: SharedStringTable,
    styles: StylesTable | None = None,
) -> Iterator[SheetEvent]:
    """Yield parse events for one worksheet stream.

    Args:
        source: Binary stream of a worksheet part (``xl/worksheets/sheetN.xml``)
        strings: Shared string table used to resolve ``t="s"`` cells
        styles: Styles table for number formats (None: numerics have no format)

    Raises:
        WorkbookOpenError: the XML is not well formed
        UnresolvedStringIndexError: a shared-string index is unknown
        MalformedAddressError: a cell reference cannot be parsed
    """
    sheet_data: ET.Element | None = None
    current_row = -1
    next_column = 0
    try:
        for event, elem in ET.iterparse(source, events=("start", "end")):
            tag = elem.tag
            if event == "start":
                if tag == _ROW_TAG:
                    r = elem.get("r")
                    current_row = int(r) - 1 if r and r.isdigit() else current_row + 1
                    next_column = 0
                    yield RowStart(current_row)
                elif tag == _SHEET_DATA_TAG:
                    sheet_data = elem
                continue

            if tag == _CELL_TAG:
                reference = elem.get("r")
                if reference:
                    next_column = parse_cell_reference(reference).column + 1
                else:
                    reference = f"{get_column_letter(next_column + 1)}{current_row + 1}"
                    next_column += 1
                yield _build_cell_event(elem, reference, strings, styles)
            elif tag == _ROW_TAG:
                elem.clear()
                if sheet_data is not None:
                    sheet_data.remove(elem)
                yield RowEnd(current_row)
            elif tag == _SHEET_DATA_TAG:
                # セルデータ以降 (mergeCells 等) は読まない
                return
    except ET.ParseError as e:
        raise WorkbookOpenError(f"invalid worksheet XML: {e}") from e
