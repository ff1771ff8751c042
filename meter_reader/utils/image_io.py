import base64
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from meter_reader.core.errors import DecodeFailure


def load_image_from_bytes(image_bytes: bytes, max_bytes: int) -> Image.Image:
    if not image_bytes:
        raise DecodeFailure('Missing image upload (field name: image).', code='MISSING_IMAGE')
    if len(image_bytes) > max_bytes:
        raise DecodeFailure(f'Image too large. Max {max_bytes} bytes.', code='IMAGE_TOO_LARGE', status_code=413)

    try:
        image = Image.open(BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeFailure() from exc

    if image.mode != 'RGB':
        image = image.convert('RGB')
    return image


def to_jpeg_bytes(image: Image.Image, quality: int = 92) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format='JPEG', quality=quality)
    return buffer.getvalue()


def to_jpeg_base64(image: Image.Image | None) -> str | None:
    if image is None:
        return None
    return base64.b64encode(to_jpeg_bytes(image)).decode('ascii')
