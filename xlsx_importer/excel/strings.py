from __future__ import annotations

from collections.abc import Sequence
from typing import IO
from xml.etree import ElementTree as ET

from .container import SHARED_STRINGS_CONTENT_TYPE, XlsxContainer
from .errors import UnresolvedStringIndexError, WorkbookOpenError

"""Shared string table (read-only, loaded once per opened workbook)."""

__all__ = [
    "MAIN_NS",
    "SharedStringTable",
    "collect_text",
]

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
_SI_TAG = f"{{{MAIN_NS}}}si"
_T_TAG = f"{{{MAIN_NS}}}t"
_R_TAG = f"{{{MAIN_NS}}}r"


def collect_text(element: ET.Element) -> str:
    """Concatenate the text of an ``<si>`` / ``<is>`` element.

    Plain ``<t>`` children and rich-text runs ``<r><t>`` are joined in order;
    phonetic runs (``<rPh>``) are left out.
    """
    parts: list[str] = []
    for child in element:
        if child.tag == _T_TAG:
            parts.append(child.text or "")
        elif child.tag == _R_TAG:
            for t in child.iter(_T_TAG):
                parts.append(t.text or "")
    return "".join(parts)


class SharedStringTable:
    """Maps shared-string indices to their text."""

    def __init__(self, strings: Sequence[str] = ()) -> None:
        self._strings: tuple[str, ...] = tuple(strings)

    @classmethod
    def load(cls, container: XlsxContainer) -> SharedStringTable:
        stream = container.open_first(SHARED_STRINGS_CONTENT_TYPE)
        if stream is None:
            return cls()
        with stream:
            return cls.from_stream(stream)

    @classmethod
    def from_stream(cls, stream: IO[bytes]) -> SharedStringTable:
        strings: list[str] = []
        try:
            for _, elem in ET.iterparse(stream, events=("end",)):
                if elem.tag == _SI_TAG:
                    strings.append(collect_text(elem))
                    elem.clear()
        except ET.ParseError as e:
            raise WorkbookOpenError(f"invalid shared strings part: {e}") from e
        return cls(strings)

    def get(self, index: int) -> str:
        if index < 0 or index >= len(self._strings):
            raise UnresolvedStringIndexError(
                f"shared string index {index} out of range (table size {len(self._strings)})"
            )
        return self._strings[index]

    def __len__(self) -> int:
        return len(self._strings)
