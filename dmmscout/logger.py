"""
Process-wide log sink for dmmscout.

Everything goes to stderr (stdout carries command output) and, when a log
file is configured, to that file as well. Each line is flushed and synced
as it is written so a crashed run still leaves a complete log.
"""
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO


def _stamp() -> str:
    return datetime.now().strftime('%H:%M:%S.%f')[:-3]


class ScoutLogger:
    """stderr + optional file logger; debug lines only in debug mode"""

    def __init__(self, log_file: Optional[Path] = None, debug: bool = False):
        self.log_file = log_file
        self.debug_mode = debug
        self._started = datetime.now()
        self._handle: Optional[TextIO] = None

        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            self._handle = log_file.open('w', buffering=1, encoding='utf-8')
            from dmmscout import __version__

            self.log(f"({self._started:%H:%M:%S}  Started dmmscout {__version__})")

    def log(self, msg: str, prefix: str = ""):
        line = prefix + msg
        print(line, file=sys.stderr, flush=True)
        if self._handle is not None:
            self._handle.write(f"{line}\n")
            self._handle.flush()
            os.fsync(self._handle.fileno())

    def info(self, msg: str):
        self.log(msg)

    def warning(self, msg: str):
        self.log(msg, "[WARNING] ")

    def error(self, msg: str):
        self.log(msg, "[ERROR] ")

    def debug(self, msg: str):
        if self.debug_mode:
            self.log(msg, f"[{_stamp()}] [DEBUG] ")

    def fetch_request(self, method: str, url: str):
        """Page request line (debug mode only)"""
        if self.debug_mode:
            self.log(f"Fetch Request: {method} {url}", f"[{_stamp()}] ")

    def fetch_response(self, status: int, url: str, size: int, elapsed_ms: float):
        """Page response line with timing and body size (debug mode only)"""
        if self.debug_mode:
            self.log(
                f"Fetch Response ({elapsed_ms:.0f}ms): Status {status}, {size:,} bytes from {url}",
                f"[{_stamp()}] ",
            )

    def close(self):
        """Write the session footer and release the log file"""
        if self._handle is None:
            return
        ended = datetime.now()
        seconds = (ended - self._started).total_seconds()
        self.log(f"({ended:%H:%M:%S}  Ended session, elapsed {seconds:.1f}s)")
        self._handle.close()
        self._handle = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


# Set by the CLI; library code falls back to a screen-only logger.
_logger: Optional[ScoutLogger] = None


def set_logger(logger: ScoutLogger):
    global _logger
    _logger = logger


def get_logger() -> ScoutLogger:
    global _logger
    if _logger is None:
        _logger = ScoutLogger()
    return _logger


def log(msg: str):
    get_logger().log(msg)


def info(msg: str):
    get_logger().info(msg)


def warning(msg: str):
    get_logger().warning(msg)


def error(msg: str):
    get_logger().error(msg)


def debug(msg: str):
    get_logger().debug(msg)
