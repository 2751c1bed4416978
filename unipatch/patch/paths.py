import logging
from pathlib import Path, PurePosixPath

from unipatch.patch.exceptions import PathError

logger = logging.getLogger(__name__)


def strip_components(path: str, strip: int) -> str:
    """
    Drop `strip` leading slash-delimited components from a header path.

    Stripping more components than the path has yields an empty string;
    callers are expected to keep `strip` within the path's depth.
    """

    if strip < 0:
        raise PathError(f"Strip count must be non-negative, got {strip}", path=path)

    pos = 0
    while pos < len(path) and strip > 0:
        if path[pos] == "/":
            strip -= 1
        pos += 1
    return path[pos:]


def resolve_safe_path(
    output_root: Path,
    stripped_path: str,
    allow_symlinks: bool = False
) -> Path:
    """
    Resolve a stripped patch path within the output root.

    Args:
        output_root: Directory the patch is applied under
        stripped_path: Header path after `strip_components`
        allow_symlinks: If False, reject paths that pass through a symlink

    Returns:
        Absolute Path guaranteed to be inside output_root

    Raises:
        PathError: If the path is empty, absolute, escapes output_root, or
            crosses a symlink while symlinks are not allowed
    """

    output_root = Path(output_root).resolve()

    if not stripped_path:
        raise PathError("Path is empty after stripping leading components", path=stripped_path)

    if PurePosixPath(stripped_path).is_absolute():
        logger.warning("Absolute patch path rejected: %s", stripped_path)
        raise PathError(f"Absolute path {stripped_path} is not allowed", path=stripped_path)

    candidate = (output_root / stripped_path).resolve()

    if candidate == output_root or not candidate.is_relative_to(output_root):
        logger.warning("Path escape attempt: %s is not inside %s", candidate, output_root)
        raise PathError(
            f"Path {stripped_path} resolves outside of {output_root}",
            path=stripped_path,
        )

    if not allow_symlinks:
        path_so_far = output_root

        for part in (output_root / stripped_path).relative_to(output_root).parts:
            path_so_far = path_so_far / part

            if path_so_far.is_symlink():
                logger.warning("Symlink blocked: %s", path_so_far)
                raise PathError(f"Path contains symlink: {path_so_far}", path=stripped_path)

    logger.debug("Resolved patch path: %s -> %s", stripped_path, candidate)
    return candidate
