from pydantic import BaseModel, Field


class OrientedBoxOut(BaseModel):
    x: float
    y: float
    width: float
    height: float
    angle: float
    class_index: int = Field(ge=0, le=1)
    confidence: float


class DigitCandidateIn(BaseModel):
    x: float = Field(allow_inf_nan=False)
    y: float = Field(default=0.0, allow_inf_nan=False)
    width: float = Field(ge=0.0, allow_inf_nan=False)
    height: float = Field(default=0.0, ge=0.0, allow_inf_nan=False)
    digit: int = Field(ge=0, le=9)
    confidence: float = Field(ge=0.0, le=1.0)


class DigitCandidateOut(BaseModel):
    x: float
    y: float
    width: float
    height: float
    digit: int
    confidence: float


class ModelInfo(BaseModel):
    model: str
    weights_path: str | None = None
    weights_sha256: str | None = None


class ReadingResponse(BaseModel):
    ok: bool = True
    digits: str | None = None
    reading: str | None = None
    error: str | None = None
    message: str | None = None
    orientation: OrientedBoxOut | None = None
    candidates: list[DigitCandidateOut] = []
    crop_jpeg_base64: str | None = None
    latency_ms: int


class AssembleRequest(BaseModel):
    candidates: list[DigitCandidateIn]


class FormatRequest(BaseModel):
    digits: str = Field(min_length=1, pattern=r'^[0-9]+$')


class FormatResponse(BaseModel):
    ok: bool = True
    digits: str
    reading: str


class HealthResponse(BaseModel):
    ok: bool
    version: str
    provider: str
    model_loaded: bool
    orientation_model: ModelInfo | None = None
    digit_model: ModelInfo | None = None
    model_loaded_at: str | None = None
    uptime_s: float


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    message: str
    request_id: str | None = None
