from __future__ import annotations

import re
import zipfile
from pathlib import Path
from typing import IO
from xml.etree import ElementTree as ET

from .errors import SheetNotFoundError, WorkbookOpenError

"""Minimal xlsx container reader.

Only enumerates parts by content type and opens them as byte streams. No
workbook model is built: relationships, defined names and sheet objects are
never parsed, which keeps opening a huge workbook cheap.
"""

__all__ = [
    "XlsxContainer",
    "WORKSHEET_CONTENT_TYPE",
    "SHARED_STRINGS_CONTENT_TYPE",
    "STYLES_CONTENT_TYPE",
]

CONTENT_TYPES_PART = "[Content_Types].xml"
CONTENT_TYPES_NS = "http://schemas.openxmlformats.org/package/2006/content-types"

WORKSHEET_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.worksheet+xml"
SHARED_STRINGS_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sharedStrings+xml"
STYLES_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.styles+xml"

_DIGITS_RE = re.compile(r"(\d+)")


def _natural_key(name: str) -> list[object]:
    # sheet2.xml < sheet10.xml
    return [int(p) if p.isdigit() else p.lower() for p in _DIGITS_RE.split(name)]


class XlsxContainer:
    """Read-only access to the parts of an xlsx zip archive.

    Use as a context manager; the archive is closed on every exit path::

        with XlsxContainer(path) as container:
            with container.open_part(0) as stream:
                ...
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._zip: zipfile.ZipFile | None = None
        self._content_types: dict[str, str] | None = None

    def __enter__(self) -> XlsxContainer:
        self.open()
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    def open(self) -> None:
        if self._zip is not None:
            return
        try:
            self._zip = zipfile.ZipFile(self.path)
        except (OSError, zipfile.BadZipFile) as e:
            raise WorkbookOpenError(f"Error while opening workbook {self.path}: {e}") from e

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    @property
    def archive(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise WorkbookOpenError(f"workbook not open: {self.path}")
        return self._zip

    def _load_content_types(self) -> dict[str, str]:
        if self._content_types is None:
            try:
                root = ET.fromstring(self.archive.read(CONTENT_TYPES_PART))
            except KeyError as e:
                raise WorkbookOpenError(f"{self.path.name}: missing {CONTENT_TYPES_PART}") from e
            except ET.ParseError as e:
                raise WorkbookOpenError(f"{self.path.name}: invalid {CONTENT_TYPES_PART}: {e}") from e
            overrides: dict[str, str] = {}
            for el in root.iter(f"{{{CONTENT_TYPES_NS}}}Override"):
                part = el.get("PartName", "").lstrip("/")
                if part:
                    overrides[part] = el.get("ContentType", "")
            self._content_types = overrides
        return self._content_types

    def list_parts(self, content_type: str = WORKSHEET_CONTENT_TYPE) -> list[str]:
        """Return part names with the given content type in natural name order."""
        names = [p for p, ct in self._load_content_types().items() if ct == content_type]
        return sorted(names, key=_natural_key)

    def open_part(self, index: int, content_type: str = WORKSHEET_CONTENT_TYPE) -> IO[bytes]:
        """Open the ``index``-th part of ``content_type`` as a binary stream."""
        parts = self.list_parts(content_type)
        if index < 0 or index >= len(parts):
            raise SheetNotFoundError(index, len(parts))
        try:
            return self.archive.open(parts[index])
        except KeyError as e:
            raise WorkbookOpenError(f"{self.path.name}: part listed but missing: {parts[index]}") from e

    def open_first(self, content_type: str) -> IO[bytes] | None:
        """Open the first part of ``content_type``; None when the workbook has none."""
        parts = self.list_parts(content_type)
        if not parts:
            return None
        return self.open_part(0, content_type)
