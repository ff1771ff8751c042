from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    provider: str = 'dummy'
    orientation_model_id: str = 'models/meter_obb.pt'
    digit_model_id: str = 'models/meter_digits.pt'
    remote_base_url: str = 'http://127.0.0.1:5000'
    remote_orientation_path: str = '/model/orientation'
    remote_digit_path: str = '/model/digits'
    remote_timeout_ms: int = 12000
    input_size: int = 640
    digit_conf_threshold: float = 0.5
    flip_angle_threshold_deg: float = 20.0
    slot_distance_divisor: float = 3.0
    include_crop: bool = True
    max_image_bytes: int = 8 * 1024 * 1024
    host: str = '127.0.0.1'
    port: int = 8001
    log_level: str = 'INFO'
    version: str = '1.0.0'


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
