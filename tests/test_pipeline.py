import httpx
import numpy as np
import pytest
from PIL import Image

from meter_reader.config import Settings
from meter_reader.core.detector import DIGIT_STAGE, ORIENTATION_STAGE, Detector, create_detector
from meter_reader.core.errors import (
    EmptyDigitSequence,
    ExtractionFailure,
    InferenceFailure,
    InvalidTensor,
    NoDigitCandidates,
    NoOrientedDetection,
)
from meter_reader.core.pipeline import MeterReader, recognize_candidates
from meter_reader.providers.remote_provider import RemoteProvider


class StaticDetector(Detector):
    def __init__(self, output, model_id: str = 'static'):
        self._output = np.asarray(output, dtype=np.float32)
        self._model_id = model_id
        self.calls: list[tuple[int, ...]] = []

    @property
    def model_id(self) -> str:
        return self._model_id

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        self.calls.append(tensor.shape)
        return self._output


def make_reader(orientation=None, digits=None, **kwargs) -> MeterReader:
    settings = Settings(provider='dummy')
    return MeterReader(
        orientation_detector=orientation or create_detector(settings, ORIENTATION_STAGE),
        digit_detector=digits or create_detector(settings, DIGIT_STAGE),
        **kwargs,
    )


def photo() -> Image.Image:
    return Image.new('RGB', (480, 320), color=(200, 200, 200))


def test_dummy_pipeline_reads_meter():
    outcome = make_reader().read(photo())

    assert outcome.ok is True
    assert outcome.error is None
    assert outcome.result.digits == '001235'
    assert outcome.result.reading == '123.5'
    assert outcome.crop.size == (640, 640)
    assert outcome.orientation.class_index == 0
    assert len(outcome.candidates) == 7
    assert outcome.latency_ms >= 1


def test_both_passes_receive_model_sized_tensors():
    orientation = StaticDetector([0.5, 0.5, 0.5, 0.1, 0.9, 0.1, 0.0])
    digits = StaticDetector([0.5, 0.5, 0.1, 0.2, *([0.0] * 7), 0.9, 0.0, 0.0])

    outcome = make_reader(orientation, digits, input_size=320).read(photo())

    assert orientation.calls == [(320, 320, 3)]
    assert digits.calls == [(320, 320, 3)]
    assert outcome.result.digits == '7'


def test_missing_orientation_is_reported_without_crop():
    outcome = make_reader(orientation=StaticDetector([])).read(photo())

    assert outcome.ok is False
    assert isinstance(outcome.error, NoOrientedDetection)
    assert outcome.crop is None
    assert outcome.result is None


def test_degenerate_box_is_extraction_failure():
    orientation = StaticDetector([0.5, 0.5, 0.0, 0.1, 0.9, 0.1, 0.0])

    outcome = make_reader(orientation=orientation).read(photo())

    assert isinstance(outcome.error, ExtractionFailure)
    assert outcome.crop is None


def test_filtered_digits_keep_crop():
    weak = StaticDetector([0.5, 0.5, 0.1, 0.2, 0.4, *([0.0] * 9)])

    outcome = make_reader(digits=weak).read(photo())

    assert isinstance(outcome.error, NoDigitCandidates)
    assert outcome.result is None
    assert outcome.crop is not None
    assert outcome.crop.size == (640, 640)


def test_non_finite_rows_are_dropped():
    outcome = make_reader(digits=StaticDetector([[np.nan] * 14])).read(photo())

    assert outcome.ok is False
    assert isinstance(outcome.error, NoDigitCandidates)
    assert outcome.crop is not None


def test_invalid_tensor_error_is_recoverable():
    class BrokenDetector(StaticDetector):
        def infer(self, tensor):
            raise InvalidTensor('boom')

    outcome = make_reader(digits=BrokenDetector([])).read(photo())

    assert isinstance(outcome.error, InvalidTensor)
    assert outcome.crop is not None


def test_empty_candidate_list_is_empty_digit_sequence():
    with pytest.raises(EmptyDigitSequence):
        recognize_candidates([])


def test_remote_digit_failure_keeps_crop(monkeypatch):
    transport = httpx.MockTransport(lambda request: httpx.Response(503, json={'error': 'busy'}))

    class MockClient(httpx.Client):
        def __init__(self, *args, **kwargs):
            kwargs['transport'] = transport
            super().__init__(*args, **kwargs)

    monkeypatch.setattr(httpx, 'Client', MockClient)

    outcome = make_reader(digits=RemoteProvider(base_url='http://models.local')).read(photo())

    assert outcome.ok is False
    assert isinstance(outcome.error, InferenceFailure)
    assert outcome.error.code == 'INFERENCE_FAILED'
    assert outcome.crop is not None
    assert outcome.crop.size == (640, 640)
