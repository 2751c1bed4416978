import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from unipatch.patch.classify import BODY_PREFIXES, classify
from unipatch.patch.exceptions import FormatError, PathError
from unipatch.patch.hunks import parse_hunk_header
from unipatch.patch.models import DEV_NULL, LineKind, PatchUnit
from unipatch.patch.paths import resolve_safe_path, strip_components

logger = logging.getLogger(__name__)

# git format-patch ends a mail with "-- " followed by the git version.
GIT_SIGNATURE_SEPARATOR = "-- "


@dataclass
class TokenizerState:
    unit: PatchUnit | None = None
    in_hunk_body: bool = False
    old_remaining: int = 0
    new_remaining: int = 0
    open_hunk: str | None = None
    closed_hunk: str | None = None


class PatchTokenizer:
    """
    Streaming scanner that groups patch lines into per-file units.

    Feed lines one at a time; `feed` returns a completed unit whenever a
    boundary is reached and `finish` flushes whatever is buffered at end of
    input. Units without both file headers or without hunks are dropped,
    which is what lets diffstat blocks and commit messages sit between
    file patches.
    """

    def __init__(self, strip: int, output_root: Path, allow_symlinks: bool = False):
        if strip < 0:
            raise PathError(f"Strip count must be non-negative, got {strip}")
        self.strip = strip
        self.output_root = Path(output_root)
        self.allow_symlinks = allow_symlinks
        self.state = TokenizerState()

    def feed(self, line: str) -> PatchUnit | None:
        state = self.state
        kind = classify(line, state.in_hunk_body)

        if kind is LineKind.OLD_FILE_HEADER or kind is LineKind.NEW_FILE_HEADER:
            completed = None
            if state.unit is not None and state.unit.hunk_count > 0:
                completed = self._complete()
            unit = self._current_unit()
            unit.lines.append(line)
            name = self._header_name(line)
            if kind is LineKind.OLD_FILE_HEADER:
                unit.old_name = name
            else:
                unit.new_name = name
                self.state.in_hunk_body = False
            return completed

        if kind is LineKind.HUNK_HEADER:
            unit = self._current_unit()
            try:
                hunk = parse_hunk_header(line, path=unit.new_name or unit.old_name)
            except FormatError:
                if unit.old_name is not None and unit.new_name is not None:
                    raise
                logger.debug("Ignoring malformed hunk header outside a file patch: %s", line)
                return self._complete()
            unit.lines.append(hunk.header)
            unit.hunk_count += 1
            state.old_remaining = hunk.old_count
            state.new_remaining = hunk.new_count
            state.open_hunk = hunk.header
            self._update_body()
            return None

        if kind is LineKind.HUNK_BODY_LINE:
            state.unit.lines.append(line)
            if line[0] != "+":
                state.old_remaining -= 1
            if line[0] != "-":
                state.new_remaining -= 1
            self._update_body()
            return None

        if kind is LineKind.NO_NEWLINE_MARKER and state.unit is not None and state.unit.hunk_count > 0:
            state.unit.lines.append(line)
            return None

        if (
            state.closed_hunk is not None
            and line.startswith(BODY_PREFIXES)
            and line != GIT_SIGNATURE_SEPARATOR
        ):
            raise FormatError(
                f"Hunk {state.closed_hunk} has more body lines than its header declares",
                path=state.unit.new_name or state.unit.old_name,
                hunk_header=state.closed_hunk,
            )

        return self._complete()

    def finish(self) -> PatchUnit | None:
        return self._complete()

    def _update_body(self) -> None:
        state = self.state
        state.in_hunk_body = state.old_remaining > 0 or state.new_remaining > 0
        state.closed_hunk = None if state.in_hunk_body else state.open_hunk

    def _current_unit(self) -> PatchUnit:
        if self.state.unit is None:
            self.state.unit = PatchUnit()
        return self.state.unit

    def _header_name(self, line: str) -> str:
        # The line could look like:
        # --- foo/bar.txt	2019-05-27 17:19:37.054593200 +0200
        raw = line[4:].split("\t", 1)[0]
        if raw == DEV_NULL:
            return DEV_NULL
        return strip_components(raw, self.strip)

    def _complete(self) -> PatchUnit | None:
        unit = self.state.unit
        self.state = TokenizerState()

        if unit is None:
            return None
        if not unit.is_eligible:
            logger.debug("Discarding incomplete patch unit of %d lines", len(unit.lines))
            return None
        if unit.creates_file and unit.deletes_file:
            raise FormatError(
                f"Both file headers are {DEV_NULL}",
                path=DEV_NULL,
            )

        if not unit.creates_file:
            unit.old_path = resolve_safe_path(self.output_root, unit.old_name, self.allow_symlinks)
        if not unit.deletes_file:
            unit.new_path = resolve_safe_path(self.output_root, unit.new_name, self.allow_symlinks)
        logger.debug("Completed patch unit %s -> %s", unit.old_path, unit.new_path)
        return unit


def iter_patch_units(
    lines: Iterable[str],
    strip: int,
    output_root: Path,
    allow_symlinks: bool = False
) -> Iterator[PatchUnit]:
    """
    Yield completed patch units in the order they appear in the stream.

    Lines are expected without their trailing newline. Each unit is
    yielded as soon as its terminating boundary is read, so a consumer
    that applies units as they arrive processes the patch in one pass.
    """

    tokenizer = PatchTokenizer(strip, output_root, allow_symlinks)
    for line in lines:
        unit = tokenizer.feed(line)
        if unit is not None:
            yield unit
    unit = tokenizer.finish()
    if unit is not None:
        yield unit
