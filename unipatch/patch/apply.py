import logging
from collections.abc import Iterable
from pathlib import Path

from unipatch.config import PatchOptions
from unipatch.patch.exceptions import HunkMismatch, PathError, PatchIOError
from unipatch.patch.hunks import apply_hunks, parse_hunks
from unipatch.patch.models import (
    AppliedFile,
    FileAction,
    FileContent,
    PatchResult,
    PatchUnit,
)
from unipatch.patch.tokenizer import iter_patch_units
from unipatch.util.files import read_file_content, remove_file, write_file_content

logger = logging.getLogger(__name__)


def _action_for(unit: PatchUnit) -> FileAction:
    if unit.creates_file:
        return FileAction.CREATE
    if unit.deletes_file:
        return FileAction.DELETE
    if unit.old_path != unit.new_path:
        return FileAction.RENAME
    return FileAction.MODIFY


def apply_unit(unit: PatchUnit, options: PatchOptions) -> AppliedFile:
    """
    Apply one completed patch unit.

    Hunks are parsed and applied in memory first; the target is only
    touched once every hunk has matched. When the old and new paths differ
    the result is written to the new path and the old file is kept.
    """

    action = _action_for(unit)
    label = unit.target_path
    hunks = parse_hunks(unit.lines, path=label)

    if unit.creates_file:
        if unit.new_path.exists():
            raise PathError(f"Cannot create {unit.new_path}: file already exists", path=unit.new_path)
        original = FileContent()
    else:
        original = read_file_content(unit.old_path, options.encoding)

    updated = apply_hunks(original, hunks, path=label)

    if unit.deletes_file and updated.lines:
        raise HunkMismatch(
            label,
            hunks[-1].header,
            hunks[-1].old_start,
            reason=f"{len(updated.lines)} lines would remain after deleting the file",
        )

    if options.dry_run:
        logger.info("Dry run: %s %s (%d hunks)", action, label, len(hunks))
    elif unit.deletes_file:
        remove_file(unit.old_path)
        logger.info("Deleted %s", label)
    else:
        write_file_content(unit.new_path, updated, options.encoding)
        logger.info("Patched %s (%d hunks)", label, len(hunks))

    return AppliedFile(
        old_path=unit.old_path,
        new_path=unit.new_path,
        action=action,
        hunks=len(hunks),
    )


def apply_patch_lines(lines: Iterable[str], options: PatchOptions) -> PatchResult:
    """
    Apply a stream of patch lines (without line terminators) under
    `options.output_dir`.

    Units are applied as soon as the tokenizer completes them. The first
    error aborts the run; files patched before it stay patched.
    """

    result = PatchResult(dry_run=options.dry_run)
    units = iter_patch_units(
        lines,
        strip=options.strip,
        output_root=options.output_dir,
        allow_symlinks=options.allow_symlinks,
    )
    for unit in units:
        result.files.append(apply_unit(unit, options))

    logger.debug("Applied %d file patches under %s", len(result.files), options.output_dir)
    return result


def apply_patch_text(patch_text: str, options: PatchOptions) -> PatchResult:
    return apply_patch_lines(patch_text.replace("\r\n", "\n").split("\n"), options)


def apply_patch(patch_file: Path, options: PatchOptions) -> PatchResult:
    """
    Apply the unified diff stored in `patch_file`.

    Args:
        patch_file: Path to the patch
        options: Strip count, output directory and write behaviour

    Returns:
        PatchResult listing every file patched, in patch order

    Raises:
        FormatError, PathError, HunkMismatch: On the first unit that fails
        PatchIOError: If the patch or a target file cannot be read or written
    """

    patch_file = Path(patch_file)
    try:
        with patch_file.open("r", encoding=options.encoding) as f:
            return apply_patch_lines((line.rstrip("\n") for line in f), options)
    except (OSError, UnicodeDecodeError) as e:
        raise PatchIOError(f"Failed to read patch {patch_file}: {e}", path=patch_file) from e
