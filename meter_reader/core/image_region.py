import logging
import math

from PIL import Image

from meter_reader.core.errors import ExtractionFailure
from meter_reader.core.geometry import crop_rect, letterbox, rotate_90_clockwise, rotate_about_center
from meter_reader.core.types import OrientedBoxDetection

logger = logging.getLogger('meter_reader.image_region')

DEFAULT_TARGET_SIZE = 640
DEFAULT_FLIP_ANGLE_THRESHOLD_DEG = 20.0


def _needs_quarter_turn(width: float, height: float, angle_deg: float, threshold_deg: float) -> bool:
    # the detector reports near-axis-aligned strips with the wrong long side
    if height > width and angle_deg < threshold_deg:
        return True
    if width > height and angle_deg > 90.0 - threshold_deg:
        return True
    return False


def extract_horizontal_rect(
    image: Image.Image,
    center_x: float,
    center_y: float,
    width: float,
    height: float,
    angle: float,
    target_size: int = DEFAULT_TARGET_SIZE,
) -> Image.Image:
    """Cut a rotated rectangle out of ``image`` as an upright, letterboxed square.

    ``angle`` is in radians. The rectangle is always treated as landscape: a
    portrait box has its sides swapped and its angle turned back a quarter.
    """
    if height > width:
        width, height = height, width
        angle -= math.pi / 2

    rotated = rotate_about_center(image, math.degrees(angle), center=(center_x, center_y))
    cropped = crop_rect(rotated, center_x - width / 2, center_y - height / 2, width, height)
    return letterbox(cropped, target_size)


def extract_oriented_region(
    image: Image.Image,
    detection: OrientedBoxDetection,
    target_size: int = DEFAULT_TARGET_SIZE,
    flip_angle_threshold_deg: float = DEFAULT_FLIP_ANGLE_THRESHOLD_DEG,
) -> Image.Image:
    image_width, image_height = image.size
    center_x = detection.x * image_width
    center_y = detection.y * image_height
    width = detection.width * image_width
    height = detection.height * image_height

    values = (center_x, center_y, width, height, detection.angle)
    if not all(math.isfinite(value) for value in values):
        raise ExtractionFailure('Oriented box has non-finite geometry.', details={'box': list(values)})
    if width <= 0 or height <= 0 or image_width <= 0 or image_height <= 0:
        raise ExtractionFailure(
            'Oriented box is degenerate.',
            details={'box_size': [width, height], 'image_size': [image_width, image_height]},
        )

    source = image
    if _needs_quarter_turn(width, height, math.degrees(detection.angle), flip_angle_threshold_deg):
        source = rotate_90_clockwise(image)
        center_x, center_y = image_height - center_y, center_x
        width, height = height, width
        logger.debug('Applied quarter turn before extraction angle_deg=%.2f', math.degrees(detection.angle))

    angle = detection.angle + detection.class_index * math.pi
    try:
        return extract_horizontal_rect(source, center_x, center_y, width, height, angle, target_size)
    except (ValueError, ZeroDivisionError, OverflowError) as exc:
        raise ExtractionFailure(
            f'Could not extract the meter region: {exc}',
            details={'center': [center_x, center_y], 'size': [width, height], 'angle': angle},
        ) from exc
