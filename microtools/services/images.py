"""
In-process image transforms.

Recompression, format conversion, blur and resize run on Pillow inside the
service process; nothing here shells out. All functions are synchronous and
CPU-bound, callers run them in the threadpool.
"""

from io import BytesIO
from pathlib import Path

from loguru import logger
from PIL import Image, ImageFilter, ImageOps

from microtools.exceptions import InvalidParameterError

DEFAULT_QUALITY = 80
MIN_QUALITY = 10
MAX_QUALITY = 100
WATERMARK_BLUR_RADIUS = 4

# Formats whose encoder does not take a quality parameter
_LOSSLESS_FORMATS = {"PNG", "GIF", "BMP", "TIFF"}

# Modes the PNG encoder writes as they are
_PNG_MODES = {"1", "L", "LA", "I", "P", "RGB", "RGBA"}
_ALPHA_MODES = {"LA", "La", "PA", "RGBA", "RGBa"}


def clamp_quality(raw: str | int | None, default: int = DEFAULT_QUALITY) -> int:
    """
    Parse and clamp a compression quality.

    Args:
        raw: Value as received from the form
        default: Used when the value is missing or not an integer

    Returns:
        Quality in [10, 100]
    """
    if raw is None:
        return default
    try:
        quality = int(str(raw).strip())
    except ValueError:
        return default
    return max(MIN_QUALITY, min(MAX_QUALITY, quality))


def parse_dimension(raw: str | int | None, name: str, maximum: int) -> int | None:
    """
    Parse an optional resize dimension.

    Args:
        raw: Value as received from the form
        name: Parameter name for error messages
        maximum: Largest accepted value

    Returns:
        The dimension, or None when not supplied

    Raises:
        InvalidParameterError: If the value is not an integer in [1, maximum]
    """
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise InvalidParameterError(f"{name} must be an integer", name) from None
    if value < 1 or value > maximum:
        raise InvalidParameterError(f"{name} must be between 1 and {maximum}", name)
    return value


def pillow_format(extension: str) -> str | None:
    """
    Resolve a file extension to a Pillow format name.

    Args:
        extension: Extension with or without the leading dot

    Returns:
        Format name such as ``JPEG`` or ``WEBP``, or None if Pillow cannot write it
    """
    extension = extension.lower().lstrip(".")
    if not extension:
        return None
    format_name = Image.registered_extensions().get(f".{extension}")
    if format_name is None or format_name not in Image.SAVE:
        return None
    return format_name


def _prepare_mode(image: Image.Image, format_name: str) -> Image.Image:
    """Flatten modes the target encoder cannot store."""
    if format_name == "JPEG":
        if image.mode in ("RGBA", "LA", "P"):
            rgba = image.convert("RGBA")
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[-1])
            return background
        if image.mode not in ("RGB", "L"):
            return image.convert("RGB")
    elif format_name == "WEBP" and image.mode not in ("RGB", "RGBA"):
        return image.convert("RGBA" if image.mode in _ALPHA_MODES or image.mode == "P" else "RGB")
    elif format_name == "PNG" and image.mode not in _PNG_MODES:
        if image.mode.startswith("I;16"):
            return image.convert("I")
        return image.convert("RGBA" if image.mode in _ALPHA_MODES else "RGB")
    return image


def encode_image(image: Image.Image, format_name: str, quality: int | None = None) -> bytes:
    """
    Encode an image into bytes.

    Args:
        image: Loaded image
        format_name: Pillow format name
        quality: Encoder quality for lossy formats

    Returns:
        Encoded image data
    """
    image = _prepare_mode(image, format_name)
    save_params: dict = {}
    if format_name in _LOSSLESS_FORMATS:
        save_params["optimize"] = True
    elif quality is not None:
        save_params["quality"] = quality

    buffer = BytesIO()
    image.save(buffer, format=format_name, **save_params)
    return buffer.getvalue()


def recompress_image(path: Path, extension: str, quality: int) -> bytes:
    """
    Re-encode an image in its own format at the given quality.

    Args:
        path: Image file
        extension: Extension of the original upload
        quality: Clamped quality

    Returns:
        Recompressed image data

    Raises:
        ValueError: If the extension has no writable format
        OSError: If the file is not a readable image
    """
    format_name = pillow_format(extension)
    if format_name is None:
        raise ValueError(f"Unsupported image format: {extension or 'none'}")

    with Image.open(path) as image:
        image.load()
        return encode_image(image, format_name, quality)


def convert_image(path: Path, target: str) -> bytes:
    """
    Convert an image to another format.

    Args:
        path: Source image
        target: Target extension, e.g. ``webp``

    Returns:
        Encoded image data in the target format
    """
    format_name = pillow_format(target)
    if format_name is None:
        raise ValueError(f"Unsupported image format: {target}")

    with Image.open(path) as image:
        image.load()
        return encode_image(image, format_name)


def blur_image(path: Path, output_file: Path, radius: float = WATERMARK_BLUR_RADIUS) -> Path:
    """
    Blur the whole image and save it as PNG.

    A rough approximation of watermark removal, not inpainting.

    Args:
        path: Source image
        output_file: Where to write the PNG
        radius: Gaussian blur radius

    Returns:
        ``output_file``
    """
    with Image.open(path) as image:
        # Palette and bilevel images cannot be filtered directly
        if image.mode not in ("L", "RGB", "RGBA"):
            image = image.convert("RGBA")
        blurred = image.filter(ImageFilter.GaussianBlur(radius))
        blurred.save(output_file, format="PNG")
    logger.debug(f"Blurred image written to {output_file.name}")
    return output_file


def resize_image(path: Path, width: int | None, height: int | None) -> bytes:
    """
    Resize an image and encode it as PNG.

    With both dimensions the image is scaled to cover the box and centre
    cropped. With one dimension the other follows the aspect ratio.

    Args:
        path: Source image
        width: Target width in pixels
        height: Target height in pixels

    Returns:
        PNG data
    """
    if not width and not height:
        raise ValueError("width or height is required")

    with Image.open(path) as image:
        image.load()
        if width and height:
            resized = ImageOps.fit(image, (width, height), method=Image.Resampling.LANCZOS)
        elif width:
            ratio = width / image.width
            resized = image.resize((width, max(1, round(image.height * ratio))), Image.Resampling.LANCZOS)
        else:
            ratio = height / image.height
            resized = image.resize((max(1, round(image.width * ratio)), height), Image.Resampling.LANCZOS)
        return encode_image(resized, "PNG")
