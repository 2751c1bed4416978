"""Unified diff parsing and hunk application."""

from .apply import apply_patch, apply_patch_lines, apply_patch_text, apply_unit
from .classify import classify
from .exceptions import (
    FormatError,
    HunkMismatch,
    PatchError,
    PatchErrorType,
    PatchIOError,
    PathError,
)
from .hunks import apply_hunks, parse_hunk_header, parse_hunks
from .models import (
    AppliedFile,
    FileAction,
    FileContent,
    Hunk,
    HunkLine,
    LineKind,
    LineTag,
    PatchResult,
    PatchUnit,
)
from .paths import resolve_safe_path, strip_components
from .tokenizer import PatchTokenizer, TokenizerState, iter_patch_units

__all__ = [
    "apply_patch",
    "apply_patch_lines",
    "apply_patch_text",
    "apply_unit",
    "classify",
    "PatchError",
    "PatchErrorType",
    "FormatError",
    "PathError",
    "HunkMismatch",
    "PatchIOError",
    "apply_hunks",
    "parse_hunk_header",
    "parse_hunks",
    "AppliedFile",
    "FileAction",
    "FileContent",
    "Hunk",
    "HunkLine",
    "LineKind",
    "LineTag",
    "PatchResult",
    "PatchUnit",
    "resolve_safe_path",
    "strip_components",
    "PatchTokenizer",
    "TokenizerState",
    "iter_patch_units",
]
