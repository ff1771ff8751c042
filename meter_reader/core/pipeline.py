import logging
import time

from PIL import Image

from meter_reader.config import Settings
from meter_reader.core.detector import Detector
from meter_reader.core.errors import EmptyDigitSequence, MeterReaderError, NoDigitCandidates, NoOrientedDetection
from meter_reader.core.geometry import to_model_input
from meter_reader.core.image_region import extract_oriented_region
from meter_reader.core.postprocess import decode_digit_candidates, decode_oriented_boxes, pick_oriented_box
from meter_reader.core.reading import format_reading
from meter_reader.core.sequence import DEFAULT_SLOT_DISTANCE_DIVISOR, assemble_digits
from meter_reader.core.types import DigitCandidate, ReadingOutcome, RecognitionResult

logger = logging.getLogger('meter_reader.pipeline')


def recognize_candidates(
    candidates: list[DigitCandidate],
    slot_distance_divisor: float = DEFAULT_SLOT_DISTANCE_DIVISOR,
) -> RecognitionResult:
    digits = assemble_digits(candidates, slot_distance_divisor)
    if not digits:
        raise EmptyDigitSequence(details={'candidate_count': len(candidates)})
    return format_reading(digits)


class MeterReader:
    """Photo in, reading out. Detectors are owned by the caller."""

    def __init__(
        self,
        orientation_detector: Detector,
        digit_detector: Detector,
        input_size: int = 640,
        digit_conf_threshold: float = 0.5,
        flip_angle_threshold_deg: float = 20.0,
        slot_distance_divisor: float = 3.0,
    ) -> None:
        self.orientation_detector = orientation_detector
        self.digit_detector = digit_detector
        self.input_size = int(input_size)
        self.digit_conf_threshold = float(digit_conf_threshold)
        self.flip_angle_threshold_deg = float(flip_angle_threshold_deg)
        self.slot_distance_divisor = float(slot_distance_divisor)

    @classmethod
    def from_settings(cls, settings: Settings, orientation_detector: Detector, digit_detector: Detector) -> 'MeterReader':
        return cls(
            orientation_detector=orientation_detector,
            digit_detector=digit_detector,
            input_size=settings.input_size,
            digit_conf_threshold=settings.digit_conf_threshold,
            flip_angle_threshold_deg=settings.flip_angle_threshold_deg,
            slot_distance_divisor=settings.slot_distance_divisor,
        )

    def read(self, image: Image.Image) -> ReadingOutcome:
        start = time.perf_counter()
        outcome = ReadingOutcome()
        try:
            self._run(image, outcome)
        except MeterReaderError as exc:
            outcome.error = exc
            logger.info('Meter reading failed code=%s message=%s crop=%s', exc.code, exc.message, outcome.crop is not None)
        outcome.latency_ms = max(int((time.perf_counter() - start) * 1000), 1)
        return outcome

    def _run(self, image: Image.Image, outcome: ReadingOutcome) -> None:
        if image.mode != 'RGB':
            image = image.convert('RGB')

        boxes = decode_oriented_boxes(self.orientation_detector.infer(to_model_input(image, self.input_size)))
        best = pick_oriented_box(boxes)
        if best is None:
            raise NoOrientedDetection()
        outcome.orientation = best

        crop = extract_oriented_region(
            image,
            best,
            target_size=self.input_size,
            flip_angle_threshold_deg=self.flip_angle_threshold_deg,
        )
        outcome.crop = crop

        raw_digits = self.digit_detector.infer(to_model_input(crop, self.input_size))
        candidates = decode_digit_candidates(raw_digits, self.digit_conf_threshold)
        outcome.candidates = candidates
        if not candidates:
            raise NoDigitCandidates(details={'threshold': self.digit_conf_threshold})

        outcome.result = recognize_candidates(candidates, self.slot_distance_divisor)
        logger.debug(
            'Meter reading boxes=%s candidates=%s digits=%s reading=%s',
            len(boxes),
            len(candidates),
            outcome.result.digits,
            outcome.result.reading,
        )
