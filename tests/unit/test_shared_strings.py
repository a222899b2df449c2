from __future__ import annotations

import io
from pathlib import Path

import pytest

from xlsx_helpers import MAIN_NS, write_xlsx
from xlsx_importer.excel.container import XlsxContainer
from xlsx_importer.excel.errors import UnresolvedStringIndexError, WorkbookOpenError
from xlsx_importer.excel.strings import SharedStringTable


def _stream(body: str) -> io.BytesIO:
    return io.BytesIO(f'<sst xmlns="{MAIN_NS}">{body}</sst>'.encode("utf-8"))


def test_plain_and_rich_text_items():
    table = SharedStringTable.from_stream(
        _stream(
            "<si><t>id</t></si>"
            "<si><r><t>Hello </t></r><r><rPr><b/></rPr><t>World</t></r></si>"
            "<si><t>漢字</t><rPh sb=\"0\" eb=\"2\"><t>カンジ</t></rPh></si>"
        )
    )
    assert len(table) == 3
    assert table.get(0) == "id"
    assert table.get(1) == "Hello World"
    # ふりがなは含めない
    assert table.get(2) == "漢字"


def test_empty_item_keeps_index():
    table = SharedStringTable.from_stream(_stream("<si><t/></si><si><t>b</t></si>"))
    assert table.get(0) == ""
    assert table.get(1) == "b"


@pytest.mark.parametrize("index", [-1, 2, 100])
def test_unknown_index(index: int):
    table = SharedStringTable(["a", "b"])
    with pytest.raises(UnresolvedStringIndexError):
        table.get(index)


def test_invalid_xml():
    with pytest.raises(WorkbookOpenError):
        SharedStringTable.from_stream(io.BytesIO(b"<sst><si>"))


def test_load_without_part_is_empty(tmp_path: Path):
    path = write_xlsx(tmp_path / "nostrings.xlsx", ['<row r="1"><c r="A1"><v>1</v></c></row>'])
    with XlsxContainer(path) as container:
        assert len(SharedStringTable.load(container)) == 0


def test_load_from_container(tmp_path: Path):
    path = write_xlsx(tmp_path / "strings.xlsx", [""], shared_strings=["x", "y"])
    with XlsxContainer(path) as container:
        table = SharedStringTable.load(container)
    assert table.get(1) == "y"
