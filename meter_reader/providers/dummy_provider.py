import numpy as np

from meter_reader.core.detector import ORIENTATION_STAGE, Detector

# x, y, w, h, conf_upright, conf_flipped, angle
_ORIENTED_BOXES = [
    [0.5, 0.5, 0.6, 0.15, 0.92, 0.05, 0.0],
    [0.3, 0.7, 0.2, 0.1, 0.1, 0.4, 0.3],
]

# x, y, w, h, digit, confidence; the last two overlap like a wheel mid-roll
_DIGITS = [
    (0.15, 0.5, 0.12, 0.2, 0, 0.9),
    (0.29, 0.5, 0.12, 0.2, 0, 0.88),
    (0.43, 0.5, 0.12, 0.2, 1, 0.91),
    (0.50, 0.5, 0.12, 0.2, 7, 0.3),
    (0.57, 0.5, 0.12, 0.2, 2, 0.87),
    (0.71, 0.5, 0.12, 0.2, 3, 0.93),
    (0.85, 0.5, 0.12, 0.2, 4, 0.9),
    (0.855, 0.5, 0.12, 0.2, 5, 0.6),
]


def _digit_rows() -> list[list[float]]:
    rows = []
    for x, y, w, h, digit, confidence in _DIGITS:
        scores = [0.01] * 10
        scores[digit] = confidence
        rows.append([x, y, w, h, *scores])
    return rows


def _flatten(rows: list[list[float]]) -> np.ndarray:
    # detector layout is (C, N): one row per field, one column per candidate
    return np.asarray(rows, dtype=np.float32).T.ravel()


class DummyProvider(Detector):
    def __init__(self, stage: str = ORIENTATION_STAGE, model_id: str = 'dummy-v1') -> None:
        self._stage = stage
        self._model_id = model_id

    @property
    def model_id(self) -> str:
        return self._model_id

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        if tensor.ndim != 3 or tensor.shape[2] != 3:
            raise ValueError(f'Expected an (H, W, 3) tensor, got shape {tensor.shape}.')
        if self._stage == ORIENTATION_STAGE:
            return _flatten(_ORIENTED_BOXES)
        return _flatten(_digit_rows())
