from enum import StrEnum
from pathlib import Path


class PatchErrorType(StrEnum):
    FORMAT = "format"
    PATH = "path"
    HUNK_MISMATCH = "hunk_mismatch"
    IO = "io"


class PatchError(Exception):
    def __init__(
        self,
        error_type: PatchErrorType,
        message: str,
        path: Path | str | None = None,
        details: dict | None = None
    ):
        super().__init__(message)
        self.error_type = error_type
        self.path = path
        self.details = details or {}


class FormatError(PatchError):
    """Malformed hunk header, or body line counts disagree with the header."""
    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        hunk_header: str | None = None,
        line_number: int | None = None
    ):
        super().__init__(
            PatchErrorType.FORMAT,
            message,
            path = path,
            details = {
                "hunk_header": hunk_header,
                "line_number": line_number
            }
        )


class PathError(PatchError):
    """Degenerate strip count, or a path resolving outside the output root."""
    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
    ):
        super().__init__(
            PatchErrorType.PATH,
            message,
            path = path,
        )


class HunkMismatch(PatchError):
    """A context or deleted line does not match the original file."""
    def __init__(
        self,
        path: Path | str | None,
        hunk_header: str,
        line_number: int,
        expected: str | None = None,
        actual: str | None = None,
        reason: str | None = None
    ):
        where = f"{path}: " if path is not None else ""
        message = reason or f"expected {expected!r}, found {actual!r}"
        super().__init__(
            PatchErrorType.HUNK_MISMATCH,
            f"{where}hunk {hunk_header} does not apply at line {line_number}: {message}",
            path = path,
            details = {
                "hunk_header": hunk_header,
                "line_number": line_number,
                "expected": expected,
                "actual": actual
            }
        )
        self.hunk_header = hunk_header
        self.line_number = line_number


class PatchIOError(PatchError):
    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
    ):
        super().__init__(
            PatchErrorType.IO,
            message,
            path = path,
        )
