"""Scan a source folder into :class:`ScriptRecord` rows."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List

from .config import SKIP_DIRS
from .conflicts import check_conflict
from .models import DEFAULT_SYNTAX, ScopeSyntax, ScriptRecord, SuggestionInput
from .parser import ScopeParseError, read_declarations
from .suggester import suggest_for

logger = logging.getLogger(__name__)


def iter_source_files(folder: Path, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> Iterator[Path]:
    """Yield source files under *folder* in a stable order.

    Directories named in ``SKIP_DIRS`` below *folder* are not entered.
    """
    folder = Path(folder)
    if not folder.is_dir():
        return
    for ext in syntax.extensions:
        for file_path in sorted(folder.rglob(f"*{ext}")):
            if not file_path.is_file():
                continue
            if any(part in SKIP_DIRS for part in file_path.relative_to(folder).parts[:-1]):
                continue
            yield file_path


def relative_path(file_path: str, base_path: str) -> str:
    """Forward-slash path of *file_path* below *base_path*, or *file_path* itself."""
    normalized_file = file_path.replace("\\", "/")
    normalized_base = base_path.replace("\\", "/").rstrip("/") + "/"
    if normalized_file.startswith(normalized_base):
        return normalized_file[len(normalized_base):]
    return file_path


def analyze_script(
    file_path: Path,
    source_folder: Path,
    options: SuggestionInput,
    syntax: ScopeSyntax = DEFAULT_SYNTAX,
) -> ScriptRecord:
    """Build the record for one file.

    Raises:
        ScopeParseError: If the file cannot be read.
    """
    facts = read_declarations(file_path, syntax)
    suggested = suggest_for(str(file_path), options)
    type_names = list(facts.type_names)
    has_conflict, message = check_conflict(suggested, type_names)
    return ScriptRecord(
        file_path=str(file_path),
        relative_path=relative_path(str(file_path), str(source_folder)),
        current_scope_name=facts.scope_name,
        suggested_scope_name=suggested,
        type_names=type_names,
        has_type_name_conflict=has_conflict,
        conflict_message=message,
    )


def scan_scripts(
    source_folder: Path,
    options: SuggestionInput,
    syntax: ScopeSyntax = DEFAULT_SYNTAX,
) -> List[ScriptRecord]:
    """Scan every source file below *source_folder*.

    Files that cannot be read are logged and left out. A missing folder
    yields an empty list.
    """
    source_folder = Path(source_folder)
    if not source_folder.is_dir():
        logger.warning("Folder does not exist: %s", source_folder)
        return []

    records: List[ScriptRecord] = []
    for file_path in iter_source_files(source_folder, syntax):
        try:
            records.append(analyze_script(file_path, source_folder, options, syntax))
        except ScopeParseError as exc:
            logger.error("Error analyzing %s: %s", file_path, exc.reason)
    logger.debug("Scanned %d file(s) under %s", len(records), source_folder)
    return records


def refresh_suggestions(records: List[ScriptRecord], options: SuggestionInput) -> None:
    """Recompute suggestions and conflicts in place, without re-reading files."""
    for record in records:
        record.set_suggestion(suggest_for(record.file_path, options))
