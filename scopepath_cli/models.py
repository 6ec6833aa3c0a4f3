"""Core data models shared by scanning, refactoring and reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from .conflicts import update_conflict_check


@dataclass(frozen=True)
class ScopeSyntax:
    """Keywords and file suffixes of the language being refactored."""
    name: str
    scope_keyword: str
    import_keyword: str
    extensions: Tuple[str, ...]


SYNTAX_PRESETS: Dict[str, ScopeSyntax] = {
    "csharp": ScopeSyntax("csharp", "namespace", "using", (".cs",)),
    "generic": ScopeSyntax("generic", "scope", "import", (".scope",)),
}

DEFAULT_SYNTAX = SYNTAX_PRESETS["csharp"]


def get_syntax(name: str) -> ScopeSyntax:
    """Look up a syntax preset by name.

    Raises:
        ValueError: If *name* is not a known preset.
    """
    try:
        return SYNTAX_PRESETS[name]
    except KeyError:
        known = ", ".join(sorted(SYNTAX_PRESETS))
        raise ValueError(f"Unknown syntax '{name}' (expected one of: {known})") from None


@dataclass(frozen=True)
class ScopeDeclarationFacts:
    scope_name: str
    type_names: Tuple[str, ...]

    @property
    def type_name_set(self) -> FrozenSet[str]:
        return frozenset(self.type_names)


@dataclass(frozen=True)
class SuggestionInput:
    """Everything besides the file path that a suggestion depends on."""
    root_path: str
    prefix: str = ""
    exclude_segments: FrozenSet[str] = frozenset()
    collapse_duplicates: bool = True


@dataclass
class ScriptRecord:
    """One scanned file and the scope it should declare."""
    file_path: str
    relative_path: str
    current_scope_name: str
    suggested_scope_name: str
    type_names: List[str] = field(default_factory=list)
    is_selected: bool = False
    has_type_name_conflict: bool = False
    conflict_message: str = ""

    @property
    def needs_change(self) -> bool:
        return bool(self.current_scope_name) and self.current_scope_name != self.suggested_scope_name

    @property
    def has_no_scope(self) -> bool:
        return not self.current_scope_name

    @property
    def has_warning(self) -> bool:
        return self.has_type_name_conflict

    def set_suggestion(self, name: str) -> None:
        """Replace the suggested scope and re-run the conflict check."""
        self.suggested_scope_name = name
        update_conflict_check(self)


@dataclass
class RenameOutcome:
    old_scope_name: str
    new_scope_name: str
    file_path: str = ""
    files_modified_count: int = 0
    references_updated_count: int = 0
    success: bool = False
    error_message: Optional[str] = None


@dataclass
class AffectedFileReport:
    file_path: str
    relative_path: str
    references: List[str] = field(default_factory=list)


@dataclass
class BatchSummary:
    """Aggregate result of one batch rename."""
    outcomes: List[RenameOutcome] = field(default_factory=list)
    imports_removed: int = 0

    @property
    def files_modified(self) -> int:
        return sum(o.files_modified_count for o in self.outcomes)

    @property
    def references_updated(self) -> int:
        return sum(o.references_updated_count for o in self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)
