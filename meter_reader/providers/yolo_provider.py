from pathlib import Path

import numpy as np

from meter_reader.core.detector import Detector


class YoloProvider(Detector):
    """Runs ultralytics weights on the prepared tensor and returns the raw head output.

    For an OBB model the head emits ``x, y, w, h, cls..., angle`` per anchor; for
    the digit model ``x, y, w, h, cls0..cls9``. Boxes come back in input pixels
    and are normalized here.
    """

    def __init__(self, model_id: str, input_size: int = 640) -> None:
        try:
            import torch
            from ultralytics import YOLO
        except ImportError as exc:
            raise RuntimeError('ultralytics is required for PROVIDER=yolo. Install it first.') from exc

        self._torch = torch
        self._model_id = model_id
        self._input_size = int(input_size)
        self._model = YOLO(model_id)
        self._network = self._model.model.float().eval()

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def weights_path(self) -> str | None:
        ckpt_path = getattr(self._model, 'ckpt_path', None)
        if ckpt_path:
            return str(Path(ckpt_path).resolve())
        model_candidate = Path(self._model_id)
        if model_candidate.exists():
            return str(model_candidate.resolve())
        return None

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        batch = self._torch.from_numpy(np.ascontiguousarray(tensor.transpose(2, 0, 1), dtype=np.float32))
        with self._torch.no_grad():
            output = self._network(batch.unsqueeze(0))
        if isinstance(output, (list, tuple)):
            output = output[0]

        raw = output[0].cpu().numpy().astype(np.float32)
        raw[:4] /= float(self._input_size)
        return raw.ravel()
