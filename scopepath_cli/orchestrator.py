"""Batch renaming of many files plus the final unused-import sweep."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set

from .models import DEFAULT_SYNTAX, BatchSummary, ScopeSyntax, ScriptRecord
from .parser import ScopeParseError, declares_scope, extract_type_names, is_code_line, read_declarations
from .references import ReferenceFinder, RegexReferenceFinder
from .refactorer import ScopeRefactorer, remove_import
from .scanner import iter_source_files
from .source_io import load_source, save_source

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]

RENAME_SHARE = 0.8
CLEANUP_START = 0.85


def _no_progress(fraction: float, message: str) -> None:
    pass


class BatchRenamer:
    """Runs one batch of renames against a search root.

    The moved-types map only lives for the duration of :meth:`run`; create
    a new instance (or call ``run`` again) for every batch.
    """

    def __init__(
        self,
        search_root: Path,
        syntax: ScopeSyntax = DEFAULT_SYNTAX,
        finder: Optional[ReferenceFinder] = None,
    ):
        self.search_root = Path(search_root)
        self.syntax = syntax
        self.finder = finder or RegexReferenceFinder(syntax)
        self.refactorer = ScopeRefactorer(syntax, self.finder)
        self._moved_types: Dict[str, Set[str]] = {}

    @staticmethod
    def should_attempt(record: ScriptRecord) -> bool:
        return (
            record.is_selected
            and bool(record.suggested_scope_name)
            and record.current_scope_name != record.suggested_scope_name
        )

    def run(
        self,
        records: Iterable[ScriptRecord],
        progress: Optional[ProgressCallback] = None,
    ) -> BatchSummary:
        """Rename every selected record, then remove imports that died.

        Args:
            records: Scanned records; only selected ones that need a new
                scope are attempted.
            progress: Called with ``(fraction, message)``; fractions rise
                monotonically from 0 to 1.

        Returns:
            BatchSummary with one RenameOutcome per attempted record.
        """
        report = progress or _no_progress
        self._moved_types = {}
        summary = BatchSummary()

        candidates = [r for r in records if self.should_attempt(r)]
        total = len(candidates)
        for index, record in enumerate(candidates):
            report(index / total * RENAME_SHARE, f"Processing: {record.relative_path}")

            type_names = self._read_type_names(record)
            outcome = self.refactorer.rename_scope(record, self.search_root, type_names)
            summary.outcomes.append(outcome)

            # Only a successful rename moves types out of the old scope
            if outcome.success and record.current_scope_name and type_names:
                self._moved_types.setdefault(record.current_scope_name, set()).update(type_names)

        report(CLEANUP_START, "Cleaning up unused imports...")
        summary.imports_removed = self._cleanup(report)
        report(1.0, "Completed")

        self._moved_types = {}
        return summary

    def _read_type_names(self, record: ScriptRecord) -> Optional[List[str]]:
        try:
            return list(dict.fromkeys(read_declarations(Path(record.file_path), self.syntax).type_names))
        except ScopeParseError as exc:
            logger.warning("Error extracting types from %s: %s", record.file_path, exc.reason)
            return None

    # ------------------------------------------------------------------
    # Cleanup sweep
    # ------------------------------------------------------------------

    def types_in_scope(self, scope: str, files: Iterable[Path]) -> Optional[Set[str]]:
        """Collect every type declared in files that declare *scope*.

        Returns ``None`` when a file could not be read, since the set would
        then be incomplete.
        """
        types: Set[str] = set()
        for file_path in files:
            try:
                text = load_source(file_path).text
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Error getting types of %s from %s: %s", scope, file_path, exc)
                return None
            if declares_scope(text, scope, self.syntax):
                types.update(extract_type_names(text))
        return types

    def _cleanup(self, report: ProgressCallback) -> int:
        if not self._moved_types:
            return 0

        files = list(iter_source_files(self.search_root, self.syntax))
        scopes = sorted(self._moved_types)
        removed = 0
        for index, old_scope in enumerate(scopes):
            moved = self._moved_types[old_scope]
            declared = self.types_in_scope(old_scope, files)
            if declared is None:
                logger.warning("Skipping import cleanup for %s: type set is incomplete", old_scope)
            else:
                remaining = declared - moved
                for file_path in files:
                    removed += self.cleanup_file(file_path, old_scope, remaining)

            fraction = CLEANUP_START + (1.0 - CLEANUP_START) * (index + 1) / len(scopes)
            report(min(fraction, 1.0), f"Cleaned imports of {old_scope}")
        return removed

    def cleanup_file(self, file_path: Path, old_scope: str, remaining_types: Set[str]) -> int:
        """Remove the import of *old_scope* from one file if it is dead.

        The import is dead when the scope has no remaining types, or when no
        remaining type is used anywhere in the file's code lines.

        Returns:
            Number of import lines removed.
        """
        try:
            source = load_source(file_path)
            if not self.finder.imports_scope(source.text, old_scope):
                return 0

            if remaining_types:
                code_lines = (
                    line for line in source.text.split("\n") if is_code_line(line, self.syntax)
                )
                if any(self.finder.uses_any(line, remaining_types) for line in code_lines):
                    return 0

            new_text, count = remove_import(source.text, old_scope, self.syntax)
            if count:
                save_source(source, new_text)
                logger.info("Removed unnecessary import '%s' from %s", old_scope, file_path)
            return count
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Error cleaning imports in %s: %s", file_path, exc)
            return 0
