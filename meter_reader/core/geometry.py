"""Pixel-space transforms used to prepare model inputs and meter crops.

Every function returns a new image and leaves its input untouched.
"""

import numpy as np
from PIL import Image

BLACK = (0, 0, 0)


def rotate_about_center(
    image: Image.Image,
    angle_degrees: float,
    center: tuple[float, float] | None = None,
    fill_color: tuple[int, int, int] = BLACK,
) -> Image.Image:
    """Rotate counter-clockwise about ``center`` without resizing the canvas."""
    if float(angle_degrees) % 360.0 == 0.0:
        return image.copy()
    return image.rotate(
        float(angle_degrees),
        resample=Image.Resampling.BILINEAR,
        expand=False,
        center=center,
        fillcolor=fill_color,
    )


def rotate_90_clockwise(image: Image.Image) -> Image.Image:
    return image.transpose(Image.Transpose.ROTATE_270)


def crop_rect(image: Image.Image, left: float, top: float, width: float, height: float) -> Image.Image:
    """Crop a rectangle, clamping it to the image bounds.

    Requests that run past an edge are shrunk to the available region. Only a
    request with no overlap at all is rejected.
    """
    image_width, image_height = image.size
    x1 = max(0, int(round(left)))
    y1 = max(0, int(round(top)))
    x2 = min(image_width, int(round(left + width)))
    y2 = min(image_height, int(round(top + height)))
    if x2 <= x1 or y2 <= y1:
        raise ValueError(f'Crop ({left:.1f}, {top:.1f}, {width:.1f}, {height:.1f}) is empty inside {image.size}.')
    return image.crop((x1, y1, x2, y2))


def resize_preserve_aspect(image: Image.Image, target_long_side: int) -> Image.Image:
    width, height = image.size
    if width <= 0 or height <= 0:
        raise ValueError(f'Cannot resize an empty image {image.size}.')
    if target_long_side <= 0:
        raise ValueError(f'target_long_side must be positive, got {target_long_side}.')
    scale = target_long_side / max(width, height)
    new_size = (max(1, int(round(width * scale))), max(1, int(round(height * scale))))
    if new_size == image.size:
        return image.copy()
    return image.resize(new_size, resample=Image.Resampling.BILINEAR)


def pad_to_square(
    image: Image.Image,
    target_size: int,
    fill_color: tuple[int, int, int] = BLACK,
) -> Image.Image:
    width, height = image.size
    if width > target_size or height > target_size:
        raise ValueError(f'Image {image.size} does not fit in {target_size}x{target_size}.')
    # the odd pixel of an uneven pad goes to the right/bottom edge
    pad_left = (target_size - width) // 2
    pad_top = (target_size - height) // 2
    canvas = Image.new(image.mode, (target_size, target_size), color=fill_color)
    canvas.paste(image, (pad_left, pad_top))
    return canvas


def letterbox(image: Image.Image, target_size: int, fill_color: tuple[int, int, int] = BLACK) -> Image.Image:
    return pad_to_square(resize_preserve_aspect(image, target_size), target_size, fill_color)


def to_model_input(image: Image.Image, size: int = 640) -> np.ndarray:
    """Stretch to ``size x size`` and scale RGB values into 0..1 as float32 (H, W, 3)."""
    if image.mode != 'RGB':
        image = image.convert('RGB')
    if image.size != (size, size):
        image = image.resize((size, size), resample=Image.Resampling.BILINEAR)
    return np.asarray(image, dtype=np.float32) / 255.0
