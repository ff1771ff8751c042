from meter_reader.core.errors import EmptyDigitSequence
from meter_reader.core.types import RecognitionResult

INTEGER_ONLY_BELOW = 5
FIXED_INTEGER_DIGITS = 5
LONG_READING_ABOVE = 8
LONG_READING_FRACTION_DIGITS = 3


def place_decimal_point(digits: str) -> str:
    length = len(digits)
    if length < INTEGER_ONLY_BELOW:
        return digits
    if length <= LONG_READING_ABOVE:
        return f'{digits[:FIXED_INTEGER_DIGITS]}.{digits[FIXED_INTEGER_DIGITS:]}'
    split = length - LONG_READING_FRACTION_DIGITS
    return f'{digits[:split]}.{digits[split:]}'


def _canonical(raw: str) -> str:
    integer_part, _, fraction = raw.partition('.')
    # only the integer part is parsed; fractional digits are kept verbatim
    integer_text = str(int(integer_part))
    return f'{integer_text}.{fraction}' if fraction else integer_text


def format_reading(digits: str) -> RecognitionResult:
    cleaned = (digits or '').strip()
    if not cleaned:
        raise EmptyDigitSequence(f'Cannot format digit string {digits!r}.')
    if not (cleaned.isascii() and cleaned.isdigit()):
        raise ValueError(f'Digit string may only contain 0-9, got {digits!r}.')
    reading = _canonical(place_decimal_point(cleaned))
    return RecognitionResult(digits=cleaned, reading=reading)
