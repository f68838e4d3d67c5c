"""
Server configuration - the image root, established once at startup
"""
import os
from dataclasses import dataclass

from .errors import StartupError


@dataclass(frozen=True)
class ServerConfig:
    """Immutable process configuration passed into the image editor"""

    image_root: str


def load_config(image_dir) -> ServerConfig:
    """Validate the image directory argument and build a ServerConfig.

    The root is stored in canonical form (symlinks resolved) so that
    containment checks compare like with like.
    """
    if not image_dir:
        raise StartupError("Image directory path is required")

    image_root = os.path.realpath(os.path.abspath(os.fspath(image_dir)))
    if not os.path.exists(image_root):
        raise StartupError(f"Image directory not found: {image_root}")
    if not os.path.isdir(image_root):
        raise StartupError(f"Image directory is not a directory: {image_root}")

    return ServerConfig(image_root=image_root)
