import hashlib
import logging
import os
import tempfile
from pathlib import Path

from filelock import FileLock

from unipatch.patch.exceptions import PatchIOError
from unipatch.patch.models import FileContent

logger = logging.getLogger(__name__)


def _lock_for(path: Path) -> FileLock:
    # Lock files live outside the patched tree so they never show up in it.
    digest = hashlib.sha256(str(path).encode("utf-8")).hexdigest()[:16]
    return FileLock(str(Path(tempfile.gettempdir()) / f"unipatch-{digest}.lock"))


def read_file_content(path: Path, encoding: str = "utf-8") -> FileContent:
    try:
        with path.open("r", encoding=encoding) as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise PatchIOError(f"Failed to read {path}: {e}", path=path) from e
    return FileContent.from_text(text)


def write_file_content(path: Path, content: FileContent, encoding: str = "utf-8") -> int:
    """
    Atomically replace `path` with `content`.

    - Write to a temporary file in the same directory
    - fsync, then `os.replace` over the target
    - Hold a per-path lock so concurrent writers never interleave

    Returns:
        Number of bytes written.
    """

    data = content.to_text().encode(encoding)
    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with _lock_for(path):
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".unipatch", dir=str(path.parent))
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
            tmp_path = None
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
        raise PatchIOError(f"Failed to write {path}: {e}", path=path) from e
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()

    logger.debug("Wrote %d bytes to %s", len(data), path)
    return len(data)


def remove_file(path: Path) -> None:
    try:
        with _lock_for(path):
            path.unlink()
    except OSError as e:
        logger.error("Failed to remove %s: %s", path, e)
        raise PatchIOError(f"Failed to remove {path}: {e}", path=path) from e
    logger.debug("Removed %s", path)
