import numpy as np

from meter_reader.core.errors import InvalidTensor
from meter_reader.core.types import DIGIT_ARITY, ORIENTED_BOX_ARITY, DigitCandidate, OrientedBoxDetection


def reshape_rows(flat, arity: int) -> np.ndarray:
    """Turn a flat ``(C, N)`` detector output into ``N`` rows of ``C`` values.

    Values past the last complete row of ``N`` are dropped.
    """
    if arity <= 0:
        raise InvalidTensor(f'Row arity must be positive, got {arity}.')
    try:
        values = np.asarray(flat, dtype=np.float32).ravel()
    except (TypeError, ValueError) as exc:
        raise InvalidTensor('Detector output is not numeric.') from exc

    count = values.size // arity
    if count == 0:
        return np.empty((0, arity), dtype=np.float32)
    return values[: arity * count].reshape(arity, count).T


def _finite_rows(flat, arity: int) -> list[np.ndarray]:
    return [row for row in reshape_rows(flat, arity) if np.isfinite(row).all()]


def decode_oriented_boxes(flat) -> list[OrientedBoxDetection]:
    return [OrientedBoxDetection.from_row(row) for row in _finite_rows(flat, ORIENTED_BOX_ARITY)]


def pick_oriented_box(boxes: list[OrientedBoxDetection]) -> OrientedBoxDetection | None:
    if not boxes:
        return None
    return max(boxes, key=lambda box: box.confidence)


def decode_digit_candidates(flat, threshold: float = 0.5) -> list[DigitCandidate]:
    candidates: list[DigitCandidate] = []
    for row in _finite_rows(flat, DIGIT_ARITY):
        candidate = DigitCandidate.from_row(row)
        if candidate.confidence <= threshold:
            continue
        candidates.append(candidate)
    return candidates
