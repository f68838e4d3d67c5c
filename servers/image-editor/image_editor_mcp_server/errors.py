"""
Exceptions raised by the image editor core
"""


class ImageEditorError(Exception):
    """Base class for image editor errors"""


class UnsafePathError(ImageEditorError):
    """Requested file name resolves outside the image directory"""

    def __init__(self, file_name=None):
        self.file_name = file_name
        super().__init__("unsafe file path.")


class UnsupportedFormatError(ImageEditorError):
    """File extension has no known encoder for compression"""

    def __init__(self, extension):
        self.extension = extension
        super().__init__(f"unsupported image format: {extension or '(none)'}")


class BackendError(ImageEditorError):
    """Image backend rejected the requested transform"""


class AtomicWriteError(ImageEditorError):
    """Temporary file could not be moved over the target"""


class StartupError(ImageEditorError):
    """Server configuration is invalid; nothing can be served"""
