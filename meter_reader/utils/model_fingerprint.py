import hashlib
from pathlib import Path

from meter_reader.core.detector import Detector


def sha256_file(path: str | None) -> str | None:
    if not path:
        return None
    file_path = Path(path)
    if not file_path.is_file():
        return None

    digest = hashlib.sha256()
    with file_path.open('rb') as fh:
        for chunk in iter(lambda: fh.read(1024 * 1024), b''):
            digest.update(chunk)
    return digest.hexdigest()


def describe_detector(detector: Detector) -> dict[str, str | None]:
    weights_path = detector.weights_path
    return {
        'model': detector.model_id,
        'weights_path': weights_path,
        'weights_sha256': sha256_file(weights_path),
    }
