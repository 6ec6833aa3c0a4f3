"""Read and write source files without disturbing BOMs or line endings."""

from __future__ import annotations

import codecs
from dataclasses import dataclass
from pathlib import Path


@dataclass
class SourceFile:
    path: Path
    text: str
    has_bom: bool = False


def load_source(path: Path) -> SourceFile:
    """Read *path* as UTF-8, remembering whether it started with a BOM.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    raw = Path(path).read_bytes()
    has_bom = raw.startswith(codecs.BOM_UTF8)
    if has_bom:
        raw = raw[len(codecs.BOM_UTF8):]
    return SourceFile(path=Path(path), text=raw.decode("utf-8"), has_bom=has_bom)


def save_source(source: SourceFile, text: str) -> None:
    """Write *text* back to *source*'s path with the original BOM."""
    data = text.encode("utf-8")
    if source.has_bom:
        data = codecs.BOM_UTF8 + data
    source.path.write_bytes(data)
    source.text = text
