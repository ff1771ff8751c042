import logging

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logging(level: str = 'INFO') -> None:
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger('meter_reader').setLevel(resolved)
