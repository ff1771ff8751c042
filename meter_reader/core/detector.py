from abc import ABC, abstractmethod

import numpy as np

from meter_reader.config import Settings
from meter_reader.core.types import DIGIT_ARITY, ORIENTED_BOX_ARITY

ORIENTATION_STAGE = 'orientation'
DIGIT_STAGE = 'digits'
STAGE_ARITY = {ORIENTATION_STAGE: ORIENTED_BOX_ARITY, DIGIT_STAGE: DIGIT_ARITY}


class Detector(ABC):
    """Black-box inference step: (H, W, 3) float tensor in, flat (C * N) tensor out.

    Geometry in the output is normalized to 0..1 of the input tensor size.
    """

    @abstractmethod
    def infer(self, tensor: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    @property
    @abstractmethod
    def model_id(self) -> str:
        raise NotImplementedError

    @property
    def weights_path(self) -> str | None:
        return None


def _build_detector(settings: Settings, provider: str, stage: str) -> Detector:
    if stage not in STAGE_ARITY:
        raise ValueError(f'Unsupported detector stage {stage!r}')
    provider = provider.strip().lower()
    if provider == 'dummy':
        from meter_reader.providers.dummy_provider import DummyProvider

        return DummyProvider(stage=stage, model_id=f'dummy-{stage}-v1')
    if provider == 'yolo':
        from meter_reader.providers.yolo_provider import YoloProvider

        model_id = settings.orientation_model_id if stage == ORIENTATION_STAGE else settings.digit_model_id
        return YoloProvider(model_id=model_id, input_size=settings.input_size)
    if provider == 'remote':
        from meter_reader.providers.remote_provider import RemoteProvider

        path = settings.remote_orientation_path if stage == ORIENTATION_STAGE else settings.remote_digit_path
        return RemoteProvider(
            base_url=settings.remote_base_url,
            predict_path=path,
            timeout_ms=settings.remote_timeout_ms,
            model_id=f'remote-{stage}',
        )
    raise ValueError(f'Unsupported PROVIDER={settings.provider!r}')


def create_detector(settings: Settings, stage: str) -> Detector:
    return _build_detector(settings, settings.provider, stage)


def create_detectors(settings: Settings) -> tuple[Detector, Detector]:
    return create_detector(settings, ORIENTATION_STAGE), create_detector(settings, DIGIT_STAGE)
