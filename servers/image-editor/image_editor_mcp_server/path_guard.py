"""
Path Guard - confines user-supplied file names to the image directory
"""
import os

from .errors import UnsafePathError


def is_within_root(image_root: str, candidate: str) -> bool:
    """True if candidate is image_root itself or lies beneath it.

    Compares whole path segments, so a root of /img never contains /image2.
    """
    try:
        return os.path.commonpath([image_root, candidate]) == image_root
    except ValueError:
        # Mixed absolute/relative paths or different drives
        return False


def resolve_safe_path(image_root: str, file_name: str) -> str:
    """Resolve file_name against image_root and return its canonical path.

    Pure path computation: the file does not need to exist and nothing is
    opened. Raises UnsafePathError when the canonical path escapes the root.
    """
    if not isinstance(file_name, str) or not file_name:
        raise UnsafePathError(file_name)
    if "\x00" in file_name:
        raise UnsafePathError(file_name)

    candidate = os.path.realpath(os.path.join(image_root, file_name))
    if not is_within_root(image_root, candidate):
        raise UnsafePathError(file_name)

    return candidate
