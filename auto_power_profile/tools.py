import logging
from logging.handlers import RotatingFileHandler
import os
import sys

from auto_power_profile.globals import LOG_DIR


class ConditionalFormatter(logging.Formatter):
    """
    A custom formatter that applies different format strings based on record level.
    Shows file name and line number only for ERROR and CRITICAL levels.
    """

    def __init__(self) -> None:
        self.default_fmt = "%(asctime)s [%(levelname)s] [%(module)s] %(message)s"
        self.error_fmt = "%(asctime)s [%(levelname)s] [%(filename)s:%(lineno)d] %(message)s"

        super().__init__(fmt=self.default_fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record) -> str:
        original_fmt: str = self._style._fmt

        if record.levelno >= logging.ERROR:
            self._style._fmt = self.error_fmt
        else:
            self._style._fmt = self.default_fmt

        result: str = super().format(record)

        self._style._fmt = original_fmt

        return result


def setup_logger(debug: bool = False) -> None:
    """Set up global logging, to stdout and, when the log directory is writable, to a rotating file."""
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter("[%(levelname)s] [%(module)s] %(message)s"))
    handlers = [stream_handler]

    if create_log_dir():
        file_handler = RotatingFileHandler(
            os.path.join(LOG_DIR, "app.log"),
            maxBytes=10*1024*1024, # 10MB
            backupCount=1,
            encoding="utf-8"
        )
        file_handler.setFormatter(ConditionalFormatter())
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        handlers=handlers,
        force=True,
    )

def create_log_dir() -> bool:
    try:
        os.makedirs(LOG_DIR, exist_ok=True)
        return os.access(LOG_DIR, os.W_OK)
    except OSError:
        return False
