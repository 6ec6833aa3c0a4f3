"""Reference finders: decide where a scope or type is used in source text.

The propagation engine and the affected-file scanner only talk to the
:class:`ReferenceFinder` interface, so a syntax-aware implementation can
replace the regex one without touching them.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Iterable, List, Pattern, Tuple

from .models import DEFAULT_SYNTAX, ScopeSyntax


class ReferenceFinder(ABC):
    """Abstract interface for locating scope and type references."""

    @abstractmethod
    def imports_scope(self, text: str, scope: str) -> bool:
        """True if *text* holds an import statement for exactly *scope*."""
        ...

    @abstractmethod
    def rewrite_qualified(
        self, line: str, old_scope: str, new_scope: str, type_names: Iterable[str]
    ) -> Tuple[str, int]:
        """Rewrite ``old_scope.Type`` to ``new_scope.Type``; return the line and hit count."""
        ...

    @abstractmethod
    def qualified_members(self, line: str, scope: str) -> List[str]:
        """Return every identifier that follows ``scope.`` on *line*."""
        ...

    @abstractmethod
    def uses_any(self, line: str, names: Iterable[str]) -> bool:
        """True if any of *names* occurs on *line* as a whole word."""
        ...


@lru_cache(maxsize=4096)
def _word(name: str) -> Pattern[str]:
    return re.compile(rf"\b{re.escape(name)}\b")


@lru_cache(maxsize=4096)
def _qualified(scope: str, type_names: Tuple[str, ...]) -> Pattern[str]:
    # The scope must not be the tail of a longer dotted name (Other.Foo.Widget)
    alternatives = "|".join(re.escape(name) for name in sorted(type_names, key=len, reverse=True))
    return re.compile(rf"(?<![\w.]){re.escape(scope)}\.({alternatives})\b")


@lru_cache(maxsize=1024)
def _import_of(import_keyword: str, scope: str) -> Pattern[str]:
    return re.compile(
        rf"^\s*{re.escape(import_keyword)}\s+{re.escape(scope)}\s*;",
        re.MULTILINE,
    )


@lru_cache(maxsize=1024)
def _members(scope: str) -> Pattern[str]:
    return re.compile(rf"(?<![\w.]){re.escape(scope)}\.(\w+)")


class RegexReferenceFinder(ReferenceFinder):
    """Whole-word regex matching over raw lines, no symbol table."""

    def __init__(self, syntax: ScopeSyntax = DEFAULT_SYNTAX):
        self.syntax = syntax

    def imports_scope(self, text: str, scope: str) -> bool:
        pattern = _import_of(self.syntax.import_keyword, scope)
        return pattern.search(text) is not None

    def rewrite_qualified(
        self, line: str, old_scope: str, new_scope: str, type_names: Iterable[str]
    ) -> Tuple[str, int]:
        names = tuple(dict.fromkeys(type_names))
        if not names:
            return line, 0
        # Single pass: replacement text is never rescanned
        return _qualified(old_scope, names).subn(lambda m: f"{new_scope}.{m.group(1)}", line)

    def qualified_members(self, line: str, scope: str) -> List[str]:
        return _members(scope).findall(line)

    def uses_any(self, line: str, names: Iterable[str]) -> bool:
        return any(_word(name).search(line) for name in names)

