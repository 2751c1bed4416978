from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

DEV_NULL = "/dev/null"


class LineKind(StrEnum):
    OLD_FILE_HEADER = "old_file_header"
    NEW_FILE_HEADER = "new_file_header"
    HUNK_HEADER = "hunk_header"
    HUNK_BODY_LINE = "hunk_body_line"
    NO_NEWLINE_MARKER = "no_newline_marker"
    UNRECOGNIZED = "unrecognized"


class LineTag(StrEnum):
    CONTEXT = " "
    DELETE = "-"
    INSERT = "+"


class FileAction(StrEnum):
    MODIFY = "modify"
    CREATE = "create"
    DELETE = "delete"
    RENAME = "rename"


@dataclass(frozen=True)
class HunkLine:
    tag: LineTag
    text: str


@dataclass
class Hunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    header: str
    lines: list[HunkLine] = field(default_factory=list)
    old_missing_newline: bool = False
    new_missing_newline: bool = False


@dataclass
class PatchUnit:
    """
    Raw lines of one file's diff plus the names taken from its headers.

    `old_name` / `new_name` are the header paths after stripping (or
    `DEV_NULL`); `old_path` / `new_path` are filled in once the unit is
    complete and resolved against the output root.
    """

    lines: list[str] = field(default_factory=list)
    old_name: str | None = None
    new_name: str | None = None
    old_path: Path | None = None
    new_path: Path | None = None
    hunk_count: int = 0

    @property
    def creates_file(self) -> bool:
        return self.old_name == DEV_NULL

    @property
    def deletes_file(self) -> bool:
        return self.new_name == DEV_NULL

    @property
    def is_eligible(self) -> bool:
        return (
            bool(self.lines)
            and self.hunk_count > 0
            and self.old_name is not None
            and self.new_name is not None
        )

    @property
    def target_path(self) -> Path | None:
        return self.old_path if self.deletes_file else self.new_path


@dataclass(frozen=True)
class FileContent:
    lines: tuple[str, ...] = ()
    missing_newline: bool = False

    @classmethod
    def from_text(cls, text: str) -> "FileContent":
        if text == "":
            return cls()
        lines = text.split("\n")
        if lines[-1] == "":
            lines.pop()
            return cls(tuple(lines))
        return cls(tuple(lines), missing_newline=True)

    def to_text(self) -> str:
        if not self.lines:
            return ""
        text = "\n".join(self.lines)
        return text if self.missing_newline else text + "\n"


@dataclass
class AppliedFile:
    old_path: Path | None
    new_path: Path | None
    action: FileAction
    hunks: int


@dataclass
class PatchResult:
    files: list[AppliedFile] = field(default_factory=list)
    dry_run: bool = False

    @property
    def changed_files(self) -> list[Path]:
        return [
            f.old_path if f.action is FileAction.DELETE else f.new_path
            for f in self.files
        ]
