"""Apply unified-diff patches to a directory tree."""

from unipatch.config import PatchOptions
from unipatch.patch import (
    FormatError,
    HunkMismatch,
    PatchError,
    PatchIOError,
    PatchResult,
    PathError,
    apply_patch,
    apply_patch_text,
)

__all__ = [
    "PatchOptions",
    "PatchResult",
    "PatchError",
    "FormatError",
    "PathError",
    "HunkMismatch",
    "PatchIOError",
    "apply_patch",
    "apply_patch_text",
]
