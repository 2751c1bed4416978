import logging
import re
from collections.abc import Iterable
from pathlib import Path

from unipatch.patch.exceptions import FormatError, HunkMismatch
from unipatch.patch.models import FileContent, Hunk, HunkLine, LineTag

logger = logging.getLogger(__name__)

HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@$")


def truncate_hunk_header(line: str) -> str:
    """Drop the trailing section text some diff tools append after `@@`."""
    return line[: line.find("@@", 2) + 2]


def parse_hunk_header(line: str, path: Path | str | None = None) -> Hunk:
    """
    Parse `@@ -old_start[,old_count] +new_start[,new_count] @@`.

    An omitted count means a single line, as emitted by GNU diff and
    difflib for one-line ranges.
    """

    header = truncate_hunk_header(line)
    match = HUNK_HEADER_RE.match(header)
    if not match:
        raise FormatError(f"Malformed hunk header: {line}", path=path, hunk_header=line)

    old_start, old_count, new_start, new_count = match.groups()
    return Hunk(
        old_start=int(old_start),
        old_count=int(old_count) if old_count is not None else 1,
        new_start=int(new_start),
        new_count=int(new_count) if new_count is not None else 1,
        header=header,
    )


def _check_counts(hunk: Hunk, path: Path | str | None) -> None:
    old_seen = sum(1 for line in hunk.lines if line.tag is not LineTag.INSERT)
    new_seen = sum(1 for line in hunk.lines if line.tag is not LineTag.DELETE)
    if old_seen != hunk.old_count or new_seen != hunk.new_count:
        raise FormatError(
            f"Hunk {hunk.header} declares {hunk.old_count} old / {hunk.new_count} new lines "
            f"but its body has {old_seen} old / {new_seen} new",
            path=path,
            hunk_header=hunk.header,
        )


def parse_hunks(lines: Iterable[str], path: Path | str | None = None) -> list[Hunk]:
    """
    Parse the buffered lines of one patch unit into hunks.

    File header lines before the first hunk are skipped. Each hunk's body
    must contain exactly the number of old and new lines its header
    declares.
    """

    hunks: list[Hunk] = []
    current: Hunk | None = None

    for line in lines:
        if line.startswith("@@"):
            if current is not None:
                _check_counts(current, path)
            current = parse_hunk_header(line, path)
            hunks.append(current)
            continue

        if current is None:
            # ---/+++ headers
            continue

        if line.startswith("\\"):
            if not current.lines:
                raise FormatError(
                    "No-newline marker before any hunk line",
                    path=path,
                    hunk_header=current.header,
                )
            last = current.lines[-1]
            if last.tag is not LineTag.INSERT:
                current.old_missing_newline = True
            if last.tag is not LineTag.DELETE:
                current.new_missing_newline = True
            continue

        if not line.startswith((" ", "-", "+")):
            raise FormatError(
                f"Unexpected line in hunk body: {line!r}",
                path=path,
                hunk_header=current.header,
            )
        current.lines.append(HunkLine(tag=LineTag(line[0]), text=line[1:]))

    if current is not None:
        _check_counts(current, path)

    logger.debug("Parsed %d hunks for %s", len(hunks), path)
    return hunks


def apply_hunks(
    original: FileContent,
    hunks: list[Hunk],
    path: Path | str | None = None
) -> FileContent:
    """
    Apply parsed hunks to the original content and return the new content.

    Every context and deleted line must match the original exactly at its
    expected position; there is no fuzz or offset search. The original is
    left untouched, so a failure leaves nothing to roll back.

    Raises:
        FormatError: If hunks overlap or are out of order
        HunkMismatch: If a context/deleted line differs from the original,
            or a hunk starts past the end of the file
    """

    source = original.lines
    output: list[str] = []
    cursor = 0
    reached_end = False
    missing_newline = original.missing_newline

    for hunk in hunks:
        # Pure insertions (old_count 0) name the line they follow.
        start = hunk.old_start if hunk.old_count == 0 else hunk.old_start - 1
        if start < cursor:
            raise FormatError(
                f"Hunk {hunk.header} overlaps or precedes the previous hunk",
                path=path,
                hunk_header=hunk.header,
                line_number=hunk.old_start,
            )
        if start > len(source):
            logger.warning("Hunk %s starts past end of %s", hunk.header, path)
            raise HunkMismatch(
                path,
                hunk.header,
                hunk.old_start,
                reason=f"file has only {len(source)} lines",
            )

        output.extend(source[cursor:start])
        cursor = start

        for line in hunk.lines:
            if line.tag is LineTag.INSERT:
                output.append(line.text)
                continue

            actual = source[cursor] if cursor < len(source) else None
            if actual != line.text:
                logger.warning("Hunk %s mismatch in %s at line %d", hunk.header, path, cursor + 1)
                raise HunkMismatch(
                    path,
                    hunk.header,
                    cursor + 1,
                    expected=line.text,
                    actual=actual,
                )
            if line.tag is LineTag.CONTEXT:
                output.append(actual)
            cursor += 1

        reached_end = cursor == len(source)
        if reached_end and hunk.old_count > 0 and hunk.old_missing_newline != original.missing_newline:
            logger.warning("Hunk %s end-of-file newline mismatch in %s", hunk.header, path)
            raise HunkMismatch(
                path,
                hunk.header,
                len(source),
                reason=(
                    "hunk expects the original to end without a newline"
                    if hunk.old_missing_newline
                    else "original ends without a newline but the hunk does not say so"
                ),
            )
        if reached_end:
            missing_newline = hunk.new_missing_newline

    output.extend(source[cursor:])
    if not reached_end:
        missing_newline = original.missing_newline

    return FileContent(tuple(output), missing_newline=missing_newline)
