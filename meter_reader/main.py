import logging
import time
import uuid
from datetime import datetime, timezone

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse

from meter_reader.config import get_settings
from meter_reader.core.detector import create_detectors
from meter_reader.core.errors import MeterReaderError
from meter_reader.core.pipeline import MeterReader, recognize_candidates
from meter_reader.core.reading import format_reading
from meter_reader.core.types import DigitCandidate, ReadingOutcome
from meter_reader.logging_setup import setup_logging
from meter_reader.schemas import (
    AssembleRequest,
    ErrorResponse,
    FormatRequest,
    FormatResponse,
    HealthResponse,
    ReadingResponse,
)
from meter_reader.utils.image_io import load_image_from_bytes, to_jpeg_base64
from meter_reader.utils.model_fingerprint import describe_detector

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger('meter_reader')

app = FastAPI(title='Meter Reader', version=settings.version)
started_at = time.time()


def _outcome_response(outcome: ReadingOutcome, include_crop: bool) -> ReadingResponse:
    orientation = outcome.orientation
    return ReadingResponse(
        ok=outcome.ok,
        digits=outcome.result.digits if outcome.result else None,
        reading=outcome.result.reading if outcome.result else None,
        error=outcome.error.code if outcome.error else None,
        message=outcome.error.message if outcome.error else None,
        orientation=(
            {
                'x': orientation.x,
                'y': orientation.y,
                'width': orientation.width,
                'height': orientation.height,
                'angle': orientation.angle,
                'class_index': orientation.class_index,
                'confidence': orientation.confidence,
            }
            if orientation
            else None
        ),
        candidates=[
            {
                'x': c.x,
                'y': c.y,
                'width': c.width,
                'height': c.height,
                'digit': c.digit,
                'confidence': c.confidence,
            }
            for c in outcome.candidates
        ],
        crop_jpeg_base64=to_jpeg_base64(outcome.crop) if include_crop else None,
        latency_ms=outcome.latency_ms,
    )


@app.on_event('startup')
def startup_event() -> None:
    orientation_detector, digit_detector = create_detectors(settings)
    app.state.meter_reader = MeterReader.from_settings(settings, orientation_detector, digit_detector)
    app.state.orientation_model = describe_detector(orientation_detector)
    app.state.digit_model = describe_detector(digit_detector)
    app.state.model_loaded = True
    app.state.model_loaded_at = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
    logger.info(
        'Detectors initialized provider=%s orientation_model=%s digit_model=%s input_size=%s',
        settings.provider,
        orientation_detector.model_id,
        digit_detector.model_id,
        settings.input_size,
    )
    logger.info(
        'Model fingerprint orientation_sha256=%s digit_sha256=%s model_loaded_at=%s',
        app.state.orientation_model.get('weights_sha256'),
        app.state.digit_model.get('weights_sha256'),
        app.state.model_loaded_at,
    )


@app.exception_handler(MeterReaderError)
async def meter_reader_error_handler(request: Request, exc: MeterReaderError):
    request_id = request.headers.get('x-request-id') or str(uuid.uuid4())
    logger.info('Request rejected request_id=%s code=%s', request_id, exc.code)
    payload = ErrorResponse(error=exc.code, message=exc.message, request_id=request_id)
    return JSONResponse(status_code=exc.status_code, content=payload.model_dump())


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception):
    request_id = request.headers.get('x-request-id') or str(uuid.uuid4())
    logger.exception('Unhandled exception request_id=%s', request_id)
    payload = ErrorResponse(
        error='UNEXPECTED_SERVER_ERROR',
        message='Unexpected server error.',
        request_id=request_id,
    )
    return JSONResponse(status_code=500, content=payload.model_dump())


@app.get('/health', response_model=HealthResponse)
def health():
    return HealthResponse(
        ok=True,
        version=settings.version,
        provider=settings.provider,
        model_loaded=bool(getattr(app.state, 'model_loaded', False)),
        orientation_model=getattr(app.state, 'orientation_model', None),
        digit_model=getattr(app.state, 'digit_model', None),
        model_loaded_at=getattr(app.state, 'model_loaded_at', None),
        uptime_s=round(time.time() - started_at, 3),
    )


@app.post('/read-meter', response_model=ReadingResponse)
async def read_meter(request: Request, image: UploadFile = File(...)):
    request_id = request.headers.get('x-request-id') or str(uuid.uuid4())
    image_bytes = await image.read()
    img = load_image_from_bytes(image_bytes, settings.max_image_bytes)

    meter_reader: MeterReader = app.state.meter_reader
    outcome = meter_reader.read(img)
    response = _outcome_response(outcome, settings.include_crop)

    logger.info(
        'read-meter request_id=%s bytes=%s size=%s ok=%s error=%s candidates=%s digits=%s latency_ms=%s',
        request_id,
        len(image_bytes),
        img.size,
        outcome.ok,
        response.error,
        len(outcome.candidates),
        response.digits,
        outcome.latency_ms,
    )
    return response


@app.post('/assemble', response_model=FormatResponse)
def assemble(payload: AssembleRequest):
    candidates = [
        DigitCandidate(x=c.x, y=c.y, width=c.width, height=c.height, digit=c.digit, confidence=c.confidence)
        for c in payload.candidates
    ]
    result = recognize_candidates(candidates, settings.slot_distance_divisor)
    return FormatResponse(ok=True, digits=result.digits, reading=result.reading)


@app.post('/format-reading', response_model=FormatResponse)
def format_digits(payload: FormatRequest):
    result = format_reading(payload.digits)
    return FormatResponse(ok=True, digits=result.digits, reading=result.reading)
