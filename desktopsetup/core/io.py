# desktopsetup/core/io.py
import contextlib
import os
import shutil
import sys
import tempfile
from datetime import datetime
from pathlib import Path

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def _fsync_directory(directory: Path) -> None:
    """Best-effort fsync of the containing directory so the rename is durable."""
    if not sys.platform.startswith(("darwin", "linux")):
        return

    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    try:
        dir_fd = os.open(str(directory), flags)
    except OSError:
        return

    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


def atomic_write_text(path: Path | str, content: str, perms: int | None = None) -> None:
    """
    Replace ``path`` with ``content`` without ever exposing a partial file.

    The temp file lives next to the destination so ``os.replace`` stays on one
    filesystem. On any failure the temp file is removed and the original
    destination (if any) is left untouched.
    """
    final_path = Path(path)
    final_path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(
        dir=str(final_path.parent),
        prefix=f".{final_path.name}.",
        suffix=".tmp",
        text=True,
    )
    temp_path = Path(temp_name)

    try:
        try:
            temp_file = os.fdopen(fd, "w", encoding="utf-8")
        except Exception:
            os.close(fd)
            raise

        with temp_file:
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())

        if perms is not None:
            os.chmod(temp_path, perms)  # noqa: PTH101
        elif final_path.exists():
            shutil.copymode(final_path, temp_path)

        os.replace(temp_path, final_path)  # noqa: PTH105
        _fsync_directory(final_path.parent)
    except Exception:
        with contextlib.suppress(OSError):
            temp_path.unlink()
        raise


def backup_path_for(path: Path, now: datetime | None = None) -> Path:
    """
    ``<path>.backup.<YYYYMMDD_HHMMSS>``; a ``.N`` suffix is added when a backup
    with the same timestamp already exists.
    """
    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    candidate = path.with_name(f"{path.name}.backup.{stamp}")
    counter = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.name}.backup.{stamp}.{counter}")
        counter += 1
    return candidate


def backup_file(path: Path, now: datetime | None = None) -> Path | None:
    """Copy ``path`` verbatim to a timestamped sibling. Returns None if there is nothing to back up."""
    if not path.is_file():
        return None
    target = backup_path_for(path, now)
    shutil.copy2(path, target)
    return target
