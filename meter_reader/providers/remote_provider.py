import httpx
import numpy as np

from meter_reader.core.detector import Detector
from meter_reader.core.errors import InferenceFailure, InvalidTensor


def _join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


class RemoteProvider(Detector):
    """Sends the model input to an inference server as raw little-endian float32.

    The server answers ``{"output": [...]}`` with the flat detector tensor.
    """

    def __init__(
        self,
        base_url: str = 'http://127.0.0.1:5000',
        predict_path: str = '/model/digits',
        timeout_ms: int = 12000,
        model_id: str = 'remote-detector',
    ) -> None:
        self._base_url = base_url
        self._predict_path = predict_path
        self._timeout = max(int(timeout_ms), 1000) / 1000.0
        self._model_id = model_id

    @property
    def model_id(self) -> str:
        return self._model_id

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        payload = np.ascontiguousarray(tensor, dtype='<f4')
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(
                    _join_url(self._base_url, self._predict_path),
                    content=payload.tobytes(),
                    headers={
                        'content-type': 'application/octet-stream',
                        'x-tensor-shape': ','.join(str(dim) for dim in payload.shape),
                    },
                )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise InferenceFailure(
                f'Remote detector {self._model_id} failed: {exc}',
                details={'url': _join_url(self._base_url, self._predict_path)},
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise InvalidTensor(f'Remote detector {self._model_id} returned a non-JSON body.') from exc

        output = body.get('output') if isinstance(body, dict) else None
        if not isinstance(output, list):
            raise InvalidTensor(f'Remote detector {self._model_id} returned no output list.')
        try:
            return np.asarray(output, dtype=np.float32).ravel()
        except (TypeError, ValueError) as exc:
            raise InvalidTensor(f'Remote detector {self._model_id} returned a non-numeric output.') from exc
