"""
Atomic File Writer - replaces files via a temporary sibling and a rename
"""
import os
import shutil
import tempfile
from contextlib import contextmanager
from typing import Callable, Iterator

from .errors import AtomicWriteError


@contextmanager
def temporary_sibling(target_path: str) -> Iterator[str]:
    """Create a hidden temporary file next to target_path.

    The file is removed on exit unless it has already been renamed away.
    """
    directory, name = os.path.split(target_path)
    fd, temp_path = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=directory or ".")
    os.close(fd)
    try:
        yield temp_path
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)


def atomic_replace(target_path: str, write: Callable[[str], None]) -> None:
    """Produce new content with write(temp_path) and move it over target_path.

    If write raises, its exception propagates and target_path is untouched.
    If the final rename fails, AtomicWriteError is raised and the original
    file stays in place.
    """
    with temporary_sibling(target_path) as temp_path:
        write(temp_path)

        if os.path.exists(target_path):
            shutil.copymode(target_path, temp_path)

        try:
            os.replace(temp_path, target_path)
        except OSError as e:
            raise AtomicWriteError(f"Failed to replace {os.path.basename(target_path)}: {e}") from e
