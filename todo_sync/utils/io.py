"""
Safe I/O operations with atomic writes and cooperative file locking.
"""

import contextlib
import errno
import os
import tempfile
import time
from pathlib import Path
from typing import Iterator, List

try:  # fcntl is only available on POSIX platforms
    import fcntl  # type: ignore
except ImportError:  # pragma: no cover - Windows fallback
    fcntl = None  # type: ignore

from ..core.exceptions import FileIOError, NotFoundError


DEFAULT_LOCK_TIMEOUT = 8.0  # seconds
LOCK_SLEEP_INTERVAL = 0.05  # seconds


def _lock_file_path(path: Path) -> Path:
    """Return the hidden companion lock file path for the target file."""
    return path.parent / f".{path.name}.lock"


@contextlib.contextmanager
def file_lock(target_path: Path, exclusive: bool, timeout: float = DEFAULT_LOCK_TIMEOUT) -> Iterator[None]:
    """Acquire a cooperative file lock around the target path.

    Uses POSIX advisory locking via fcntl when available; otherwise acts as a no-op.
    """
    if fcntl is None:
        yield
        return

    lock_path = _lock_file_path(target_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    lock_type = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
    deadline = time.monotonic() + timeout if timeout is not None else None

    with open(lock_path, "a") as lock_file:
        while True:
            try:
                flags = lock_type | fcntl.LOCK_NB if deadline is not None else lock_type
                fcntl.flock(lock_file.fileno(), flags)
                break
            except OSError as exc:  # pragma: no cover - depends on timing
                if exc.errno not in (errno.EACCES, errno.EAGAIN):
                    raise
                if deadline is not None and time.monotonic() >= deadline:
                    raise TimeoutError(f"Timed out waiting for lock on {target_path}") from exc
                time.sleep(LOCK_SLEEP_INTERVAL)

        try:
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


def read_lines(file_path: str, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> List[str]:
    """
    Read a text file under a shared lock and split it on newlines.

    The split keeps a trailing empty element for files ending in a newline,
    so ``"\\n".join(lines)`` reproduces the original content exactly.

    Raises:
        NotFoundError: if the file does not exist
        FileIOError: if the file cannot be read
    """
    path_obj = Path(os.path.expanduser(file_path))

    if not path_obj.exists():
        raise NotFoundError(f"File not found: {file_path}")

    try:
        with file_lock(path_obj, exclusive=False, timeout=lock_timeout):
            with path_obj.open('r', encoding='utf-8') as handle:
                content = handle.read()
    except TimeoutError as exc:
        raise FileIOError(f"Timed out waiting to read {file_path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise FileIOError(f"Failed to read {file_path}: {exc}") from exc

    return content.split('\n')


def atomic_write(file_path: str, content: str, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
    """
    Atomically write content to file.

    Args:
        file_path: Path to write to
        content: Content to write

    Raises:
        FileIOError: if the content could not be written
    """
    path_obj = Path(os.path.expanduser(file_path))

    try:
        path_obj.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileIOError(f"Cannot create directory for {file_path}: {exc}") from exc

    tmp_path = None
    try:
        with file_lock(path_obj, exclusive=True, timeout=lock_timeout):
            with tempfile.NamedTemporaryFile(
                mode='w',
                dir=str(path_obj.parent),
                prefix='.tmp_',
                delete=False,
                encoding='utf-8'
            ) as tmp_file:
                tmp_file.write(content)
                tmp_path = Path(tmp_file.name)

            os.replace(str(tmp_path), str(path_obj))
    except TimeoutError as exc:
        raise FileIOError(f"Timed out waiting to write {file_path}: {exc}") from exc
    except OSError as exc:
        raise FileIOError(f"Failed to write {file_path}: {exc}") from exc
    finally:
        if tmp_path and tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass
