"""Read-only preview of the files a rename would touch."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .models import DEFAULT_SYNTAX, AffectedFileReport, ScopeSyntax, ScriptRecord
from .orchestrator import ProgressCallback
from .parser import ScopeParseError, is_code_line, read_declarations
from .references import ReferenceFinder, RegexReferenceFinder
from .scanner import iter_source_files, relative_path
from .source_io import load_source

logger = logging.getLogger(__name__)


def check_file_for_references(
    file_path: Path,
    old_scope: str,
    type_names: Sequence[str],
    base_path: Path,
    syntax: ScopeSyntax = DEFAULT_SYNTAX,
    finder: Optional[ReferenceFinder] = None,
) -> Optional[AffectedFileReport]:
    """Report the references to *type_names* of *old_scope* in one file.

    Returns:
        A report, or ``None`` when the file has no qualified reference and
        no bare usage. An import of *old_scope* on its own does not count.
    """
    finder = finder or RegexReferenceFinder(syntax)
    try:
        text = load_source(file_path).text
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Error checking %s: %s", file_path, exc)
        return None

    has_import = finder.imports_scope(text, old_scope)
    code_lines = [line for line in text.split("\n") if is_code_line(line, syntax)]
    wanted = set(type_names)
    references: List[str] = []

    for line in code_lines:
        for member in finder.qualified_members(line, old_scope):
            reference = f"FQ: {old_scope}.{member}"
            if member in wanted and reference not in references:
                references.append(reference)

    if has_import:
        for type_name in type_names:
            if any(finder.uses_any(line, (type_name,)) for line in code_lines):
                references.append(f"Type: {type_name}")

    if not references:
        return None

    if has_import:
        references.insert(0, f"{syntax.import_keyword} {old_scope}")
    return AffectedFileReport(
        file_path=str(file_path),
        relative_path=relative_path(str(file_path), str(base_path)),
        references=references,
    )


def scan_affected_files(
    record: ScriptRecord,
    search_root: Path,
    syntax: ScopeSyntax = DEFAULT_SYNTAX,
    finder: Optional[ReferenceFinder] = None,
) -> List[AffectedFileReport]:
    """List the files under *search_root* that reference *record*'s types."""
    search_root = Path(search_root)
    old_scope = record.current_scope_name
    if not old_scope or not search_root.is_dir():
        return []

    try:
        facts = read_declarations(Path(record.file_path), syntax)
    except ScopeParseError as exc:
        logger.warning("Error extracting types from %s: %s", record.file_path, exc.reason)
        return []
    type_names = list(dict.fromkeys(facts.type_names))

    finder = finder or RegexReferenceFinder(syntax)
    excluded = Path(record.file_path).resolve()
    reports: List[AffectedFileReport] = []
    for file_path in iter_source_files(search_root, syntax):
        if file_path.resolve() == excluded:
            continue
        report = check_file_for_references(file_path, old_scope, type_names, search_root, syntax, finder)
        if report is not None:
            reports.append(report)
    return reports


def scan_affected_files_for_multiple(
    records: Iterable[ScriptRecord],
    search_root: Path,
    syntax: ScopeSyntax = DEFAULT_SYNTAX,
    progress: Optional[ProgressCallback] = None,
) -> Dict[str, List[AffectedFileReport]]:
    """Run :func:`scan_affected_files` for every selected record.

    Returns:
        Mapping of record file path to its affected files; records with no
        affected files are left out.
    """
    records = list(records)
    finder = RegexReferenceFinder(syntax)
    result: Dict[str, List[AffectedFileReport]] = {}

    for index, record in enumerate(records, start=1):
        if progress is not None:
            progress(index / len(records), f"Scanning: {record.relative_path}")
        if not record.is_selected or not record.current_scope_name:
            continue
        reports = scan_affected_files(record, search_root, syntax, finder)
        if reports:
            result[record.file_path] = reports
    return result
