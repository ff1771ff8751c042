class MeterReaderError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class DecodeFailure(MeterReaderError):
    def __init__(self, message: str = 'Could not decode image.', code: str = 'IMAGE_DECODE_FAILED', status_code: int = 400):
        super().__init__(code, message, status_code=status_code)


class NoOrientedDetection(MeterReaderError):
    def __init__(self, message: str = 'No meter region detected.', details: dict | None = None):
        super().__init__('NO_ORIENTED_DETECTION', message, status_code=422, details=details)


class ExtractionFailure(MeterReaderError):
    def __init__(self, message: str = 'Could not extract the meter region.', details: dict | None = None):
        super().__init__('EXTRACTION_FAILED', message, status_code=422, details=details)


class InvalidTensor(MeterReaderError):
    def __init__(self, message: str = 'Detector returned an unusable tensor.', details: dict | None = None):
        super().__init__('INVALID_TENSOR', message, status_code=502, details=details)


class NoDigitCandidates(MeterReaderError):
    def __init__(self, message: str = 'No digits recognized.', details: dict | None = None):
        super().__init__('NO_DIGIT_CANDIDATES', message, status_code=422, details=details)


class EmptyDigitSequence(MeterReaderError):
    def __init__(self, message: str = 'Digit sequence could not be assembled.', details: dict | None = None):
        super().__init__('EMPTY_DIGIT_SEQUENCE', message, status_code=422, details=details)


class InferenceFailure(MeterReaderError):
    def __init__(self, message: str = 'Detector inference failed.', details: dict | None = None):
        super().__init__('INFERENCE_FAILED', message, status_code=502, details=details)
