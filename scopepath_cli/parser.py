"""Line/regex based extraction of scope declarations and declared types.

This is deliberately not a syntax tree parser. Two declaration shapes are
recognised:

- header style, ``namespace A.B;``, which applies to the rest of the file
- block style, ``namespace A.B {`` or ``namespace A.B`` followed by a line
  holding only ``{``

When a header-style declaration exists anywhere in the file it wins.
Type identifiers are collected from ``class``/``struct``/``interface``/
``enum``/``record`` declarations, with or without modifier keywords.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Pattern

from .models import DEFAULT_SYNTAX, ScopeDeclarationFacts, ScopeSyntax
from .source_io import load_source

logger = logging.getLogger(__name__)

_MODIFIERS = (
    "public|internal|private|protected|static|sealed|abstract|"
    "partial|readonly|ref|unsafe|new|file"
)

# A record only counts when it opens the line (after modifiers) and its name is
# followed by a parameter list, type parameters, a body, a base list or ``;``
TYPE_DECLARATION_RE = re.compile(
    rf"^\s*(?:(?:{_MODIFIERS})\s+)*record(?:\s+(?:struct|class))?\s+([A-Za-z_]\w*)\s*(?=[(<{{:;]|$)"
    rf"|(?:\b(?:{_MODIFIERS})\s+)*\b(?:class|struct|interface|enum)\s+([A-Za-z_]\w*)"
)

CSHARP_KEYWORDS = frozenset("""
    abstract as base bool break byte case catch char checked class const continue
    decimal default delegate do double else enum event explicit extern false finally
    fixed float for foreach goto if implicit in int interface internal is lock long
    namespace new null object operator out override params private protected public
    readonly record ref return sbyte sealed short sizeof stackalloc static string
    struct switch this throw true try typeof uint ulong unchecked unsafe ushort using
    var virtual void volatile where while
""".split())

_COMMENT_PREFIXES = ("//", "/*", "*")


class ScopeParseError(ValueError):
    """Raised when a source file cannot be read or is not text."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class SyntaxPatterns:
    """Compiled patterns for one :class:`ScopeSyntax`."""
    header: Pattern[str]
    block: Pattern[str]
    declaration_line: Pattern[str]
    import_line: Pattern[str]


@lru_cache(maxsize=None)
def patterns_for(syntax: ScopeSyntax) -> SyntaxPatterns:
    scope_kw = re.escape(syntax.scope_keyword)
    import_kw = re.escape(syntax.import_keyword)
    return SyntaxPatterns(
        header=re.compile(rf"(^\s*{scope_kw}\s+)([\w.]+)(\s*;\s*$)", re.MULTILINE),
        block=re.compile(rf"(^\s*{scope_kw}\s+)([\w.]+)(\s*\{{?\s*$)", re.MULTILINE),
        declaration_line=re.compile(rf"\s*{scope_kw}(?:\s|$)"),
        import_line=re.compile(rf"(\s*{import_kw}\s+)([A-Za-z_][\w.]*)(\s*;.*)$"),
    )


# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------

def is_declaration_line(line: str, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> bool:
    return patterns_for(syntax).declaration_line.match(line) is not None


def import_target(line: str, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> Optional[str]:
    """Return the dotted name imported by *line*, or ``None``."""
    match = patterns_for(syntax).import_line.match(line)
    return match.group(2) if match else None


def is_import_line(line: str, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> bool:
    return import_target(line, syntax) is not None


def is_code_line(line: str, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> bool:
    """True for lines that can hold type usages (not imports or declarations)."""
    return not is_declaration_line(line, syntax) and not is_import_line(line, syntax)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def extract_scope_name(text: str, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> str:
    """Return the declared scope name, or ``""`` when the file has none."""
    pats = patterns_for(syntax)
    match = pats.header.search(text) or pats.block.search(text)
    return match.group(2) if match else ""


def declares_scope(text: str, scope_name: str, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> bool:
    """True if any declaration in *text* names exactly *scope_name*."""
    pats = patterns_for(syntax)
    return any(
        m.group(2) == scope_name
        for pattern in (pats.header, pats.block)
        for m in pattern.finditer(text)
    )


def extract_type_names(text: str) -> List[str]:
    """Return declared type identifiers in source order (duplicates kept)."""
    names: List[str] = []
    for line in text.split("\n"):
        if line.lstrip().startswith(_COMMENT_PREFIXES):
            continue
        for match in TYPE_DECLARATION_RE.finditer(line):
            name = match.group(1) or match.group(2)
            if name not in CSHARP_KEYWORDS:
                names.append(name)
    return names


def parse_declarations(text: str, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> ScopeDeclarationFacts:
    """Extract the scope name and declared types from file text.

    Raises:
        ScopeParseError: If the text is binary (contains NUL characters).
    """
    if "\x00" in text:
        raise ScopeParseError("<text>", "contains NUL characters, not a source file")
    return ScopeDeclarationFacts(
        scope_name=extract_scope_name(text, syntax),
        type_names=tuple(extract_type_names(text)),
    )


def read_declarations(path: Path, syntax: ScopeSyntax = DEFAULT_SYNTAX) -> ScopeDeclarationFacts:
    """Read *path* and parse it.

    Raises:
        ScopeParseError: If the file is unreadable, not UTF-8, or binary.
    """
    try:
        source = load_source(path)
    except (OSError, UnicodeDecodeError) as exc:
        raise ScopeParseError(str(path), str(exc)) from exc
    try:
        return parse_declarations(source.text, syntax)
    except ScopeParseError as exc:
        raise ScopeParseError(str(path), exc.reason) from exc
