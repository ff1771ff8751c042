from dataclasses import dataclass, field
from decimal import Decimal

from PIL import Image

from meter_reader.core.errors import InvalidTensor, MeterReaderError

ORIENTED_BOX_ARITY = 7
DIGIT_ARITY = 14
DIGIT_CLASSES = 10


@dataclass(frozen=True)
class OrientedBoxDetection:
    x: float
    y: float
    width: float
    height: float
    confidences: tuple[float, float]
    angle: float

    @classmethod
    def from_row(cls, row) -> 'OrientedBoxDetection':
        values = [float(v) for v in row]
        if len(values) != ORIENTED_BOX_ARITY:
            raise InvalidTensor(f'Oriented box row needs {ORIENTED_BOX_ARITY} values, got {len(values)}.')
        x, y, width, height, conf0, conf1, angle = values
        return cls(x=x, y=y, width=width, height=height, confidences=(conf0, conf1), angle=angle)

    @property
    def class_index(self) -> int:
        return 0 if self.confidences[0] >= self.confidences[1] else 1

    @property
    def confidence(self) -> float:
        return max(self.confidences)


@dataclass(frozen=True)
class DigitCandidate:
    x: float
    y: float
    width: float
    height: float
    digit: int
    confidence: float
    scores: tuple[float, ...] = ()

    @classmethod
    def from_row(cls, row) -> 'DigitCandidate':
        values = [float(v) for v in row]
        if len(values) != DIGIT_ARITY:
            raise InvalidTensor(f'Digit row needs {DIGIT_ARITY} values, got {len(values)}.')
        x, y, width, height = values[:4]
        scores = tuple(values[4:])
        # first maximum wins, same as numpy argmax
        digit = max(range(DIGIT_CLASSES), key=lambda index: (scores[index], -index))
        return cls(x=x, y=y, width=width, height=height, digit=digit, confidence=scores[digit], scores=scores)


@dataclass
class DigitSlot:
    candidates: list[DigitCandidate] = field(default_factory=list)


@dataclass(frozen=True)
class RecognitionResult:
    digits: str
    reading: str

    @property
    def value(self) -> Decimal:
        return Decimal(self.reading)


@dataclass
class ReadingOutcome:
    result: RecognitionResult | None = None
    crop: Image.Image | None = None
    orientation: OrientedBoxDetection | None = None
    candidates: list[DigitCandidate] = field(default_factory=list)
    error: MeterReaderError | None = None
    latency_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.result is not None and self.error is None
