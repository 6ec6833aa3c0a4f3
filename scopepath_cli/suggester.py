"""Derive a canonical scope name from a file's location in the folder tree.

Everything here is a pure function of its arguments: no filesystem access,
no dependence on the working directory.
"""

from __future__ import annotations

import posixpath
import re
from typing import Iterable, List, Optional

from .models import SuggestionInput

_INVALID_CHARS_RE = re.compile(r"[^A-Za-z0-9_.]")


def _normalize(path: str) -> str:
    return path.replace("\\", "/")


def sanitize_segment(part: str) -> str:
    """Turn one folder name into a valid scope segment.

    Characters outside ``[A-Za-z0-9_.]`` become ``_``; a leading digit
    (of the segment or of any dot-separated piece) gets a ``_`` prefix;
    an empty segment becomes ``_``.
    """
    if not part:
        return "_"

    sanitized = _INVALID_CHARS_RE.sub("_", part)
    if sanitized[0].isdigit():
        sanitized = "_" + sanitized

    pieces = sanitized.split(".")
    return ".".join("_" + p if p and p[0].isdigit() else p for p in pieces)


def collapse_adjacent_duplicates(name: str) -> str:
    """Collapse immediately repeated segments, scanning right to left.

    ``A.Core.Core.B`` becomes ``A.Core.B`` while ``A.Core.B.Core`` is kept.
    """
    kept: List[str] = []
    for segment in reversed(name.split(".")):
        if kept and kept[-1] == segment:
            continue
        kept.append(segment)
    return ".".join(reversed(kept))


def parse_exclude_list(text: Optional[str]) -> frozenset:
    """Parse ``"Runtime, Scripts,,"`` into ``{"Runtime", "Scripts"}``."""
    if not text:
        return frozenset()
    return frozenset(part.strip() for part in text.split(",") if part.strip())


def resolve_root(source_folder: str, use_source_as_root: bool, project_root: str) -> str:
    """Pick the folder that acts as the origin of suggested scope names."""
    if use_source_as_root or not project_root:
        return source_folder
    return project_root


def suggest_scope_name(
    file_path: str,
    root_path: str,
    prefix: str = "",
    exclude_segments: Iterable[str] = (),
    collapse_duplicates: bool = False,
) -> str:
    """Suggest the scope a file should declare based on its folder.

    Args:
        file_path: Path of the source file.
        root_path: Folder whose own name becomes the first scope segment
            after the prefix.
        prefix: Optional leading segment(s), omitted when empty.
        exclude_segments: Folder names dropped from the derived path.
        collapse_duplicates: Collapse adjacent repeated segments.

    Returns:
        Dotted scope name, e.g. ``Studio.Game.Core`` for
        ``<root=Game>/Core/Widget.cs`` with prefix ``Studio``.
    """
    normalized_file = _normalize(file_path)
    normalized_root = _normalize(root_path).rstrip("/")
    excluded = set(exclude_segments)

    root_folder_name = posixpath.basename(normalized_root)
    root_with_sep = normalized_root + "/"

    if normalized_file.startswith(root_with_sep):
        relative = normalized_file[len(root_with_sep):]
    else:
        # Outside the root: only the file's stem is known, which carries no folders
        relative = posixpath.splitext(posixpath.basename(normalized_file))[0]

    directory = posixpath.dirname(relative)
    segments = [s for s in directory.split("/") if s not in excluded] if directory else []

    parts: List[str] = []
    clean_prefix = prefix.strip().strip(".")
    if clean_prefix:
        parts.append(clean_prefix)
    parts.append(sanitize_segment(root_folder_name))
    parts.extend(sanitize_segment(s) for s in segments)

    name = ".".join(parts)
    if collapse_duplicates:
        name = collapse_adjacent_duplicates(name)
    return name


def suggest_for(file_path: str, options: SuggestionInput) -> str:
    return suggest_scope_name(
        file_path,
        options.root_path,
        prefix=options.prefix,
        exclude_segments=options.exclude_segments,
        collapse_duplicates=options.collapse_duplicates,
    )
