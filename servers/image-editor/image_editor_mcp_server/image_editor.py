"""
Image Editor - in-place image edits confined to the image directory
"""
import os
import sys
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from .atomic_writer import atomic_replace
from .backend import CropBox, ImageBackend, PillowBackend
from .config import ServerConfig
from .errors import UnsupportedFormatError
from .path_guard import resolve_safe_path

BRIGHTNESS_FACTORS = {
    "brighter": 1.5,
    "darker": 0.7
}

COMPRESSION_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".webp": "WEBP"
}


def _require_int(name: str, value: Any, minimum: Optional[int] = None, maximum: Optional[int] = None) -> int:
    """Coerce an integral JSON number to int and check its range"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{name} must be an integer")
        value = int(value)

    if minimum is not None and maximum is not None:
        if not minimum <= value <= maximum:
            raise ValueError(f"{name} must be between {minimum} and {maximum}")
    elif minimum is not None and value < minimum:
        if minimum == 1:
            raise ValueError(f"{name} must be a positive integer")
        raise ValueError(f"{name} must be at least {minimum}")
    return value


class ImageEditor:
    """Applies edits to image files under the configured image root"""

    def __init__(self, config: ServerConfig, backend: Optional[ImageBackend] = None):
        self.config = config
        self.backend = backend or PillowBackend()
        # One lock per resolved path; concurrent edits of the same file run in turn
        self._file_locks: Dict[str, threading.Lock] = {}
        self._file_locks_guard = threading.Lock()

    @property
    def image_root(self) -> str:
        return self.config.image_root

    def _lock_for(self, path: str) -> threading.Lock:
        with self._file_locks_guard:
            return self._file_locks.setdefault(path, threading.Lock())

    def _rewrite(self, path: str, transform: Callable[[Any], Any],
                 format_type: Optional[str] = None, quality: Optional[int] = None) -> Tuple[Dict, Dict]:
        """Decode path, transform it, and atomically replace the file with the result.

        Returns metadata for the image before and after the edit.
        """
        with self._lock_for(path):
            img = self.backend.decode(path)
            original_info = self.backend.get_info(img)
            original_info["size_bytes"] = os.path.getsize(path)

            edited = transform(img)
            output_format = format_type or original_info["format"]
            written = []

            def write(temp_path):
                written.append(self.backend.encode(edited, temp_path, output_format, quality))

            atomic_replace(path, write)

            # Describe the encoded image, which may differ in mode from the edited one
            new_info = self.backend.get_info(written[0])
            new_info["format"] = output_format
            new_info["size_bytes"] = os.path.getsize(path)
        return original_info, new_info

    def _failure(self, tool_name: str, error: Exception) -> Dict[str, Any]:
        print(f"{tool_name} failed: {error}", file=sys.stderr)
        return {"success": False, "error": f"Error: {error}"}

    def adjust_brightness(self, file_name: str, level: str) -> Dict[str, Any]:
        """Make an image brighter (x1.5) or darker (x0.7)"""
        try:
            if not isinstance(level, str) or level not in BRIGHTNESS_FACTORS:
                raise ValueError(f"level must be one of: {', '.join(BRIGHTNESS_FACTORS)}")
            factor = BRIGHTNESS_FACTORS[level]

            path = resolve_safe_path(self.image_root, file_name)
            _, new_info = self._rewrite(path, lambda img: self.backend.adjust_brightness(img, factor))
            return {
                "success": True,
                "output": f"Adjusted brightness of {file_name} ({level}).",
                "metadata": new_info
            }
        except Exception as e:
            return self._failure("adjust_brightness", e)

    def crop_image(self, file_name: str, left: int, top: int, width: int, height: int) -> Dict[str, Any]:
        """Crop image to the rectangle at (left, top) of size width x height"""
        try:
            box = CropBox(
                left=_require_int("left", left),
                top=_require_int("top", top),
                width=_require_int("width", width, minimum=1),
                height=_require_int("height", height, minimum=1)
            )

            path = resolve_safe_path(self.image_root, file_name)
            original_info, new_info = self._rewrite(path, lambda img: self.backend.extract_region(img, box))
            return {
                "success": True,
                "output": f"Cropped {file_name} from {original_info['width']}x{original_info['height']} "
                          f"to {new_info['width']}x{new_info['height']}.",
                "metadata": new_info
            }
        except Exception as e:
            return self._failure("crop_image", e)

    def compress_image(self, file_name: str, quality: int) -> Dict[str, Any]:
        """Re-encode image in its own format at the given quality (1-100)"""
        try:
            quality = _require_int("quality", quality, minimum=1, maximum=100)

            path = resolve_safe_path(self.image_root, file_name)
            extension = os.path.splitext(path)[1].lower()
            format_type = COMPRESSION_FORMATS.get(extension)
            if format_type is None:
                raise UnsupportedFormatError(extension)

            original_info, new_info = self._rewrite(path, lambda img: img, format_type=format_type, quality=quality)
            return {
                "success": True,
                "output": f"Compressed {file_name} at quality {quality} "
                          f"({original_info['size_bytes']} -> {new_info['size_bytes']} bytes).",
                "metadata": new_info
            }
        except Exception as e:
            return self._failure("compress_image", e)
