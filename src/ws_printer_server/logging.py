import logging
from pathlib import Path

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
# One line per event in the log file: "<timestamp>: <message>"
FILE_FORMAT = '%(asctime)s: %(message)s'


def setup_logging(log_level='INFO', log_file='logs.txt'):
    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.INFO)

    handlers = [logging.StreamHandler()]
    handlers[0].setFormatter(logging.Formatter(CONSOLE_FORMAT))
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)
