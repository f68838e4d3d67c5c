"""
Image Backend - pixel-level decode/transform/encode, delegated to Pillow

The editor only talks to the ImageBackend protocol, so another codec
library can be dropped in without touching path or file handling.
"""
from typing import Any, Dict, NamedTuple, Optional, Protocol

from PIL import Image, ImageEnhance

from .errors import BackendError


class CropBox(NamedTuple):
    left: int
    top: int
    width: int
    height: int


class ImageBackend(Protocol):
    """Codec capability used by the image editor"""

    def decode(self, path: str) -> Any: ...

    def get_info(self, image: Any) -> Dict[str, Any]: ...

    def adjust_brightness(self, image: Any, factor: float) -> Any: ...

    def extract_region(self, image: Any, box: CropBox) -> Any: ...

    def encode(self, image: Any, path: str, format_type: str, quality: Optional[int] = None) -> Any: ...


def _is_high_depth(image: Image.Image) -> bool:
    return image.mode in ("I", "F") or image.mode.startswith("I;16")


def _to_eight_bit(image: Image.Image) -> Image.Image:
    """Map 16/32-bit greyscale onto 8-bit L, scaling 16-bit values down"""
    if image.mode == "F":
        return image.convert("L")
    image = image.convert("I")
    if image.getextrema()[1] > 255:
        image = image.point(lambda v: v * (255 / 65535))
    return image.convert("L")


class PillowBackend:
    """ImageBackend implementation on top of Pillow"""

    def decode(self, path: str) -> Image.Image:
        """Read and fully load an image so the source file can be replaced"""
        with Image.open(path) as img:
            img.load()
        return img

    def get_info(self, image: Image.Image) -> Dict[str, Any]:
        """Get image metadata"""
        return {
            "width": image.width,
            "height": image.height,
            "format": image.format or "Unknown",
            "mode": image.mode
        }

    def adjust_brightness(self, image: Image.Image, factor: float) -> Image.Image:
        """Scale the brightness of the whole image by factor"""
        if image.mode == "CMYK":
            # Zero in CMYK is white, so blend in RGB and convert back
            enhancer = ImageEnhance.Brightness(image.convert("RGB"))
            return enhancer.enhance(factor).convert("CMYK")
        if image.mode in ("1", "P"):
            image = image.convert("RGBA" if "transparency" in image.info else "RGB")
        elif _is_high_depth(image):
            image = _to_eight_bit(image)
        enhancer = ImageEnhance.Brightness(image)
        return enhancer.enhance(factor)

    def extract_region(self, image: Image.Image, box: CropBox) -> Image.Image:
        """Extract a rectangle; areas outside the image are an error, not padding"""
        right = box.left + box.width
        bottom = box.top + box.height
        if box.left < 0 or box.top < 0 or right > image.width or bottom > image.height:
            raise BackendError(
                f"Crop area (left={box.left}, top={box.top}, width={box.width}, height={box.height}) "
                f"is outside the {image.width}x{image.height} image"
            )
        return image.crop((box.left, box.top, right, bottom))

    def encode(self, image: Image.Image, path: str, format_type: str, quality: Optional[int] = None) -> Image.Image:
        """Encode image to path in format_type and return the image as written.

        quality is format specific: JPEG and WebP pass it to the encoder,
        PNG quantizes to a smaller palette when quality is below 100.
        """
        format_type = format_type.upper()
        options: Dict[str, Any] = {}

        if _is_high_depth(image) and (format_type != "PNG" or quality is not None and quality < 100):
            image = _to_eight_bit(image)

        if format_type == "JPEG":
            if image.mode in ("RGBA", "LA", "P"):
                image = image.convert("RGBA")
                rgb_img = Image.new("RGB", image.size, (255, 255, 255))
                rgb_img.paste(image, mask=image.getchannel("A"))
                image = rgb_img
            elif image.mode not in ("RGB", "L", "CMYK"):
                image = image.convert("RGB")
            if quality is not None:
                options["quality"] = quality
        elif format_type == "PNG":
            options["optimize"] = True
            if quality is not None and quality < 100:
                if image.mode not in ("L", "RGB", "RGBA"):
                    image = image.convert("RGBA")
                image = image.quantize(colors=max(2, round(256 * quality / 100)))
        elif format_type == "WEBP":
            if quality is not None:
                options["quality"] = quality

        image.save(path, format=format_type, **options)
        return image
