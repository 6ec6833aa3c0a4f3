"""Rename scope declarations and propagate the change to dependent files.

Renaming happens in two steps:

1. The declaration in the file itself is rewritten (or a header-style one
   is inserted when the file had none).
2. Every other source file under the search root is checked on its own.
   Fully-qualified ``Old.Type`` references to moved types are rewritten,
   and files that import the old scope and use a moved type gain an import
   of the new scope. The old import is never removed here; that is the job
   of the batch-level cleanup in :mod:`scopepath_cli.orchestrator`.

Files are written only when their content actually changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .models import DEFAULT_SYNTAX, RenameOutcome, ScopeSyntax, ScriptRecord
from .parser import import_target, is_code_line, is_import_line, patterns_for, read_declarations
from .references import ReferenceFinder, RegexReferenceFinder
from .scanner import iter_source_files
from .source_io import load_source, save_source

logger = logging.getLogger(__name__)

_COMMENT_PREFIXES = ("//", "/*", "*")


@dataclass
class ReferenceUpdate:
    """Result of updating one dependent file's text."""
    text: str
    qualified_rewrites: int = 0
    import_added: bool = False

    @property
    def changed(self) -> bool:
        return self.qualified_rewrites > 0 or self.import_added

    @property
    def references_updated(self) -> int:
        return self.qualified_rewrites + int(self.import_added)


def _line_suffix(text: str) -> str:
    return "\r" if "\r\n" in text else ""


# ---------------------------------------------------------------------------
# Text transforms
# ---------------------------------------------------------------------------

def insert_declaration(text: str, new_scope: str, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> str:
    """Insert ``<scope keyword> new_scope;`` after the leading imports.

    Imports wrapped in ``#if ... #endif`` count as leading imports; the
    declaration then goes after the closing ``#endif``. Without imports the
    declaration goes before the first line that is not blank, a comment, or
    a preprocessor directive, and before the ``#if`` enclosing that line.
    """
    lines = text.split("\n")
    suffix = _line_suffix(text)
    insert_at = 0
    found_import = False
    depth = 0
    block_start = 0

    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("#"):
            if stripped.startswith("#if"):
                if not depth:
                    block_start = i
                depth += 1
            elif stripped.startswith("#endif") and depth:
                depth -= 1
                if found_import and not depth:
                    insert_at = i + 1
            continue
        if is_import_line(line, syntax):
            found_import = True
            insert_at = i + 1
        elif found_import and stripped:
            break
        elif not found_import and stripped and not stripped.startswith(_COMMENT_PREFIXES):
            insert_at = block_start if depth else i
            break

    lines[insert_at:insert_at] = [suffix, f"{syntax.scope_keyword} {new_scope};{suffix}", suffix]
    return "\n".join(lines)


def rename_declaration(
    text: str,
    old_scope: str,
    new_scope: str,
    syntax: ScopeSyntax = DEFAULT_SYNTAX,
) -> Optional[str]:
    """Rewrite the scope declaration from *old_scope* to *new_scope*.

    Only declarations naming exactly *old_scope* are touched. When the file
    has no declaration and *old_scope* is empty a header-style declaration
    is inserted.

    Returns:
        The new text, or ``None`` if nothing could be changed.
    """
    pats = patterns_for(syntax)
    pattern = pats.header if pats.header.search(text) else pats.block

    def _swap(match):
        if match.group(2) == old_scope:
            return f"{match.group(1)}{new_scope}{match.group(3)}"
        return match.group(0)

    updated = pattern.sub(_swap, text)
    if updated != text:
        return updated
    if not old_scope:
        return insert_declaration(text, new_scope, syntax)
    return None


def remove_duplicate_imports(text: str, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> str:
    """Drop repeated import lines, keeping the first of each in place.

    Lines are compared after collapsing runs of whitespace.
    """
    seen = set()
    kept: List[str] = []
    for line in text.split("\n"):
        if is_import_line(line, syntax):
            normalized = " ".join(line.split())
            if normalized in seen:
                logger.debug("Removed duplicate import: %s", line.strip())
                continue
            seen.add(normalized)
        kept.append(line)
    return "\n".join(kept)


def remove_import(text: str, scope: str, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> Tuple[str, int]:
    """Remove every import statement of exactly *scope*.

    Returns:
        ``(new_text, removed_count)``
    """
    lines = text.split("\n")
    kept = [line for line in lines if import_target(line, syntax) != scope]
    return "\n".join(kept), len(lines) - len(kept)


def update_references(
    text: str,
    old_scope: str,
    new_scope: str,
    type_names: Sequence[str],
    syntax: ScopeSyntax = DEFAULT_SYNTAX,
    finder: Optional[ReferenceFinder] = None,
) -> ReferenceUpdate:
    """Update one dependent file's text for moved *type_names*.

    Qualified ``old_scope.Type`` references are always rewritten. If the
    file imports *old_scope* exactly, uses a moved type, and does not import
    *new_scope* yet, an import of *new_scope* is added after the last import.
    """
    finder = finder or RegexReferenceFinder(syntax)
    lines = text.split("\n")

    has_old_import = False
    has_new_import = False
    last_import = -1
    for i, line in enumerate(lines):
        target = import_target(line, syntax)
        if target is None:
            continue
        last_import = i
        if target == old_scope:
            has_old_import = True
        elif target == new_scope:
            has_new_import = True

    uses_types = False
    rewrites = 0
    for i, line in enumerate(lines):
        if not is_code_line(line, syntax):
            continue
        rewritten, count = finder.rewrite_qualified(line, old_scope, new_scope, type_names)
        if count:
            lines[i] = rewritten
            rewrites += count
            uses_types = True
        elif has_old_import and not uses_types and finder.uses_any(line, type_names):
            uses_types = True

    import_added = False
    if uses_types and has_old_import and not has_new_import and last_import >= 0:
        anchor = lines[last_import]
        indent = anchor[: len(anchor) - len(anchor.lstrip())]
        suffix = "\r" if anchor.endswith("\r") else ""
        lines.insert(last_import + 1, f"{indent}{syntax.import_keyword} {new_scope};{suffix}")
        import_added = True

    result = ReferenceUpdate("\n".join(lines), rewrites, import_added)
    if result.changed:
        result.text = remove_duplicate_imports(result.text, syntax)
    return result


# ---------------------------------------------------------------------------
# File level
# ---------------------------------------------------------------------------

class ScopeRefactorer:
    """Applies scope renames to files on disk."""

    def __init__(
        self,
        syntax: ScopeSyntax = DEFAULT_SYNTAX,
        finder: Optional[ReferenceFinder] = None,
    ):
        self.syntax = syntax
        self.finder = finder or RegexReferenceFinder(syntax)

    def rename_declaration_in_file(self, file_path: Path, old_scope: str, new_scope: str) -> bool:
        """Rename (or insert) the declaration in *file_path*; True if it was written."""
        try:
            source = load_source(file_path)
            updated = rename_declaration(source.text, old_scope, new_scope, self.syntax)
            if updated is None:
                return False
            save_source(source, updated)
            logger.info("Renamed scope %r -> %r in %s", old_scope, new_scope, file_path)
            return True
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Error modifying %s: %s", file_path, exc)
            return False

    def update_file_references(
        self,
        file_path: Path,
        old_scope: str,
        new_scope: str,
        type_names: Sequence[str],
    ) -> Optional[ReferenceUpdate]:
        """Update one dependent file; returns the update if the file was written."""
        try:
            source = load_source(file_path)
            result = update_references(
                source.text, old_scope, new_scope, type_names, self.syntax, self.finder
            )
            if not result.changed:
                return None
            save_source(source, result.text)
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Error updating references in %s: %s", file_path, exc)
            return None

        if result.qualified_rewrites:
            logger.info(
                "Updated %d qualified reference(s) %s -> %s in %s",
                result.qualified_rewrites, old_scope, new_scope, file_path,
            )
        if result.import_added:
            logger.info("Added import %s in %s", new_scope, file_path)
        return result

    def update_references_in_tree(
        self,
        search_root: Path,
        old_scope: str,
        new_scope: str,
        type_names: Sequence[str],
        exclude_file: Path,
    ) -> Tuple[int, int]:
        """Update every dependent file under *search_root*.

        Returns:
            ``(files_written, references_updated)``
        """
        search_root = Path(search_root)
        if not search_root.is_dir():
            logger.warning("Search folder does not exist: %s", search_root)
            return 0, 0

        excluded = Path(exclude_file).resolve()
        files_written = 0
        references = 0
        for file_path in iter_source_files(search_root, self.syntax):
            if file_path.resolve() == excluded:
                continue
            result = self.update_file_references(file_path, old_scope, new_scope, type_names)
            if result is not None:
                files_written += 1
                references += result.references_updated
        return files_written, references

    def rename_scope(
        self,
        record: ScriptRecord,
        search_root: Path,
        type_names: Optional[Sequence[str]] = None,
    ) -> RenameOutcome:
        """Rename *record*'s scope to its suggestion and update references.

        Args:
            record: The file to rename; ``current_scope_name`` is the old
                scope, ``suggested_scope_name`` the new one.
            search_root: Folder whose files are checked for references.
            type_names: Types moved with the file. Read from the file when
                not given.

        Returns:
            RenameOutcome; failures are reported in it, never raised.
        """
        old_scope = record.current_scope_name
        new_scope = record.suggested_scope_name
        file_path = Path(record.file_path)
        outcome = RenameOutcome(old_scope, new_scope, file_path=record.file_path)

        try:
            if type_names is None:
                type_names = read_declarations(file_path, self.syntax).type_names
            moved = list(dict.fromkeys(type_names))

            if not self.rename_declaration_in_file(file_path, old_scope, new_scope):
                outcome.error_message = f"Could not modify scope declaration in {file_path}"
                return outcome
            outcome.files_modified_count = 1

            if old_scope and moved:
                files_written, references = self.update_references_in_tree(
                    search_root, old_scope, new_scope, moved, exclude_file=file_path
                )
                outcome.files_modified_count += files_written
                outcome.references_updated_count = references

            outcome.success = True
        except Exception as exc:
            logger.error("Error renaming scope in %s: %s", file_path, exc)
            outcome.error_message = str(exc)

        return outcome
