from __future__ import annotations

import faulthandler
import logging
import logging.config
import os
import queue
import sys
import traceback
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path

from calibsim.app.app_settings_manager import AppSettingsManager, RunMode
from calibsim.utils.log_util import level_from_name

LOG_FORMAT = "%(asctime)s.%(msecs)03dZ %(levelname)s %(process)d %(threadName)s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def _app_base_dir() -> Path:
    """
    Frozen build: the directory of the executable.
    Development: the project root (calibsim/app/logging_setup.py -> parents[2]).
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[2]


def _find_writable_log_dir(app_name: str) -> Path:
    """
    First, app_base_dir/logs
    Second, the user's home directory
    Finally, the current directory
    """
    candidates = [
        _app_base_dir() / "logs",
        Path.home() / f".{app_name.lower()}" / "logs",
    ]
    for d in candidates:
        try:
            d.mkdir(parents=True, exist_ok=True)
            test = d / ".write_test"
            test.write_text("ok", encoding="utf-8")
            test.unlink(missing_ok=True)
            return d
        except OSError:
            continue
    d = Path.cwd() / "logs"
    d.mkdir(parents=True, exist_ok=True)
    return d


def default_log_dir(app_name: str) -> Path:
    return _find_writable_log_dir(app_name)


def install_crash_handlers(app_name: str, log_dir: Path | None = None) -> Path | None:
    """
    Route uncaught exceptions to logging and enable faulthandler.

    :return: crash log path, or None if it could not be opened
    """
    def _excepthook(exc_type, exc, tb):
        logging.critical(
            "Uncaught exception: \n%s",
            "".join(traceback.format_exception(exc_type, exc, tb)),
        )

    sys.excepthook = _excepthook

    crash_file = (log_dir or default_log_dir(app_name)) / f"{app_name}.crash.log"
    try:
        f = open(crash_file, "w", encoding="utf-8")
    except OSError:
        logging.getLogger(__name__).warning("Crash log unavailable: %s", crash_file)
        return None
    faulthandler.enable(file=f)
    # Keep a reference so the file stays open for faulthandler.
    logging.getLogger()._calibsim_crash_fh = f
    return crash_file


def build_config(
        app_name: str,
        root_level: int | str | None = None,
        console_level: int | str = logging.INFO,
        log_dir: Path | None = None,
) -> dict:
    """Build a logging config dict; `_file_settings` describes the queued file handler."""
    if root_level is None:
        root_level = os.getenv("CALIBSIM_LOG_LEVEL", "INFO")
    log_dir = log_dir or default_log_dir(app_name)
    log_file = str(log_dir / f"{app_name}.log")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": LOG_FORMAT, "datefmt": LOG_DATEFMT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level_from_name(console_level),
            },
        },
        "root": {"level": level_from_name(root_level), "handlers": ["console"]},
        "_file_settings": {
            "filename": log_file,
            "maxBytes": 1024 * 1024 * 5,
            "backupCount": int(os.getenv("CALIBSIM_LOG_BACKUP_COUNT", 5)),
            "encoding": "utf-8",
            "format": LOG_FORMAT,
            "datefmt": LOG_DATEFMT,
        },
    }


class LogSystem:
    """Console logging plus a QueueListener writing the rotating log file."""

    def __init__(self, app_name: str, level: int | str | None = None,
                 console_level: int | str = logging.INFO):
        cfg = build_config(app_name, level, console_level)
        logging.config.dictConfig(cfg)

        root_logger = logging.getLogger()
        self._console_handler: logging.Handler | None = None
        for h in root_logger.handlers:
            if isinstance(h, logging.StreamHandler):
                self._console_handler = h
                break

        # Records go through the queue; the listener thread does the file I/O.
        self._queue: queue.Queue = queue.Queue(-1)
        self._queue_handler = QueueHandler(self._queue)
        root_logger.addHandler(self._queue_handler)

        file_settings = cfg["_file_settings"]
        self._file_handler = RotatingFileHandler(
            file_settings["filename"],
            maxBytes=file_settings["maxBytes"],
            backupCount=file_settings["backupCount"],
            encoding=file_settings["encoding"],
        )
        self._file_handler.setFormatter(logging.Formatter(file_settings["format"], file_settings["datefmt"]))

        self.listener = QueueListener(self._queue, self._file_handler, respect_handler_level=True)
        self.listener.start()
        self._stopped = False

    @classmethod
    def from_levels(cls, app_name: str, root_level: int, console_level: int = logging.INFO) -> LogSystem:
        return cls(app_name, level=root_level, console_level=console_level)

    def apply_levels(self, root_level: int, console_level: int | None = None, file_level: int | None = None) -> None:
        """Change levels after startup."""
        logging.getLogger().setLevel(root_level)
        if self._console_handler is not None and console_level is not None:
            self._console_handler.setLevel(console_level)
        if file_level is not None:
            self._file_handler.setLevel(file_level)

    def stop(self) -> None:
        """Flush queued records to the file and detach the queue handler. Safe to call twice."""
        if self._stopped:
            return
        self._stopped = True
        self.listener.stop()
        logging.getLogger().removeHandler(self._queue_handler)
        self._file_handler.close()


def apply_logging_policy(logs: LogSystem, settings: AppSettingsManager) -> None:
    """Switch log levels according to the run mode and configured level."""
    mode = getattr(settings, "run_mode", RunMode.PRODUCTION)

    if mode in (RunMode.DEVELOPMENT, RunMode.VERBOSE):
        console = logging.DEBUG
    else:
        console = level_from_name(getattr(settings, "logging_level", "INFO"))

    logs.apply_levels(root_level=logging.DEBUG, console_level=console, file_level=logging.DEBUG)


def install_qt_message_handler() -> None:
    try:
        from PySide6.QtCore import QtMsgType, qInstallMessageHandler

        levels = {
            QtMsgType.QtDebugMsg: logging.DEBUG,
            QtMsgType.QtInfoMsg: logging.INFO,
            QtMsgType.QtWarningMsg: logging.WARNING,
            QtMsgType.QtCriticalMsg: logging.ERROR,
            QtMsgType.QtFatalMsg: logging.CRITICAL,
        }

        def handler(msg_type, context, message):
            logging.getLogger("Qt").log(levels.get(msg_type, logging.ERROR), message)

        qInstallMessageHandler(handler)
        logging.getLogger("Qt").info("Qt message handler installed.")
    except Exception:
        logging.getLogger(__name__).exception("Failed to install Qt message handler.")
