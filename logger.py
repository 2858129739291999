import logging
from typing import Union

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logger(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure process-wide logging: console output, single format.

    Args:
        level: Logging level as int or name (e.g. 'DEBUG')
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
