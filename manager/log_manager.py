import logging
import os
import sys
from typing import TextIO

from tqdm import tqdm

from manager.config_manager import LogLevel

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")


class InfoFilter(logging.Filter):
    """Keep warnings off stdout; they already go to stderr."""

    def filter(self, rec: logging.LogRecord) -> bool:
        return rec.levelno < logging.WARNING


class TqdmLoggingHandler(logging.Handler):
    """Writes log messages via tqdm.write() so they do not corrupt an active progress bar."""

    def __init__(self, stream: TextIO = sys.stdout, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream)
        except Exception:
            self.handleError(record)


class LevelBasedFormatter(logging.Formatter):
    PROBLEM_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s.%(funcName)s:%(lineno)d] %(message)s"
    ROUTINE_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"

    def format(self, record: logging.LogRecord) -> str:
        self._style._fmt = self.PROBLEM_FORMAT if record.levelno >= logging.WARNING else self.ROUTINE_FORMAT
        return super().format(record)


class LogManager:
    LOG_LEVEL_MAP = {
        LogLevel.CRITICAL: logging.CRITICAL,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.INFO: logging.INFO,
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.TRACE: TRACE_LEVEL,
    }
    LOGGER_NAME: str = "TrackFiles"
    LOG_DIR: str = "logs"
    LOG_FILE: str = "track_files.log"
    MAX_BACKUPS: int = 5

    def __init__(self, log_dir: str | None = None, log_file: str | None = None, max_backups: int | None = None) -> None:
        self.logger = logging.getLogger(self.LOGGER_NAME)
        self.log_dir = log_dir or self.LOG_DIR
        self.log_file = log_file or self.LOG_FILE
        self.max_backups = max_backups or self.MAX_BACKUPS

    def _rotate_logs(self) -> None:
        """Shift log.N to log.N+1, dropping the oldest once max_backups is reached."""
        base_log = os.path.join(self.log_dir, self.log_file)
        oldest = f"{base_log}.{self.max_backups}"
        if os.path.exists(oldest):
            os.remove(oldest)
        for i in range(self.max_backups - 1, 0, -1):
            if os.path.exists(f"{base_log}.{i}"):
                os.rename(f"{base_log}.{i}", f"{base_log}.{i + 1}")
        if os.path.exists(base_log):
            os.rename(base_log, f"{base_log}.1")

    def setup_logging(self, log_level: str) -> logging.Logger:
        """Route the TrackFiles logger to a fresh log file and to the console."""
        level = LogLevel.find(log_level) if isinstance(log_level, str) else None
        if level is None:
            raise RuntimeError(f"Invalid logging level selected: {log_level} (valid levels: {', '.join(LogLevel)})")

        os.makedirs(self.log_dir, exist_ok=True)
        self._rotate_logs()

        fh = logging.FileHandler(filename=os.path.join(self.log_dir, self.log_file), encoding="utf-8", mode="w")
        fh.setLevel(TRACE_LEVEL)
        fh.setFormatter(LevelBasedFormatter(datefmt="%H:%M:%S"))
        self.logger.addHandler(fh)

        ch_err = TqdmLoggingHandler(stream=sys.stderr, level=logging.WARNING)
        ch_err.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        self.logger.addHandler(ch_err)

        ch_std = TqdmLoggingHandler(stream=sys.stdout)
        ch_std.setFormatter(logging.Formatter("%(message)s"))
        ch_std.addFilter(InfoFilter())
        self.logger.addHandler(ch_std)

        self.logger.setLevel(self.LOG_LEVEL_MAP[level])
        return self.logger
