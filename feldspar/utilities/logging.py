"""
This file is part of feldspar.

feldspar is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

feldspar is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with feldspar.  If not, see <https://www.gnu.org/licenses/>.
"""

import pathlib
import sys
from enum import Enum
from typing import Callable

from twisted.logger import (
    FileLogObserver,
    LogEvent,
    LogLevel,
    formatEventAsClassicLogText,
    globalLogPublisher,
    jsonFileLogObserver,
    textFileLogObserver,
)
from twisted.logger import Logger as TwistedLogger
from twisted.python.logfile import LogFile

from feldspar.config.constants import (
    DEFAULT_JSON_LOG_FILENAME,
    DEFAULT_LOG_FILENAME,
    USER_LOG_DIR,
)

ONE_MEGABYTE = 1_048_576
MAXIMUM_LOG_SIZE = ONE_MEGABYTE * 10
MAX_LOG_FILES = 10


class GlobalLoggerSettings:

    log_level = LogLevel.levelWithName("info")
    log_dir = USER_LOG_DIR
    _observers = dict()

    class LoggingType(Enum):
        CONSOLE = "console"
        TEXT = "text"
        JSON = "json"

    @classmethod
    def set_log_level(cls, log_level_name):
        cls.log_level = LogLevel.levelWithName(log_level_name)

    @classmethod
    def _stop_logging(cls, logging_type: LoggingType):
        observer = cls._observers.pop(logging_type, None)
        if observer:
            globalLogPublisher.removeObserver(observer)

    @classmethod
    def _is_already_configured(cls, logging_type: LoggingType) -> bool:
        return logging_type in cls._observers

    @classmethod
    def _start_logging(cls, logging_type: LoggingType):
        if cls._is_already_configured(logging_type):
            # no-op
            return

        if logging_type == cls.LoggingType.CONSOLE:
            observer = textFileLogObserver(sys.stdout)
        elif logging_type == cls.LoggingType.TEXT:
            observer = get_text_file_observer(path=cls.log_dir)
        else:
            observer = get_json_file_observer(path=cls.log_dir)

        # wrap to adhere to log level since other loggers rely on observer to differentiate
        wrapped_observer = observer_log_level_wrapper(observer)

        globalLogPublisher.addObserver(wrapped_observer)
        cls._observers[logging_type] = wrapped_observer

    @classmethod
    def start_console_logging(cls):
        cls._start_logging(cls.LoggingType.CONSOLE)

    @classmethod
    def stop_console_logging(cls):
        cls._stop_logging(cls.LoggingType.CONSOLE)

    @classmethod
    def start_text_file_logging(cls):
        cls._start_logging(cls.LoggingType.TEXT)

    @classmethod
    def stop_text_file_logging(cls):
        cls._stop_logging(cls.LoggingType.TEXT)

    @classmethod
    def start_json_file_logging(cls):
        cls._start_logging(cls.LoggingType.JSON)

    @classmethod
    def stop_json_file_logging(cls):
        cls._stop_logging(cls.LoggingType.JSON)


def _ensure_dir_exists(path):
    pathlib.Path(path).mkdir(parents=True, exist_ok=True)


def get_json_file_observer(name=DEFAULT_JSON_LOG_FILENAME, path=USER_LOG_DIR):
    _ensure_dir_exists(path)
    logfile = LogFile(name=name, directory=path, rotateLength=MAXIMUM_LOG_SIZE, maxRotatedFiles=MAX_LOG_FILES)
    observer = jsonFileLogObserver(outFile=logfile)
    return observer


def get_text_file_observer(name=DEFAULT_LOG_FILENAME, path=USER_LOG_DIR):
    _ensure_dir_exists(path)
    logfile = LogFile(name=name, directory=path, rotateLength=MAXIMUM_LOG_SIZE, maxRotatedFiles=MAX_LOG_FILES)
    observer = FileLogObserver(formatEvent=formatEventAsClassicLogText, outFile=logfile)
    return observer


class Logger(TwistedLogger):
    """Drop-in replacement of Twisted's Logger, patching the emit() method to tolerate inputs with curly braces,
    i.e., not compliant with PEP 3101.

    Log messages here routinely embed hex-encoded curve points and JSON records, so every
    format string is escaped before it reaches Twisted."""

    @classmethod
    def escape_format_string(cls, string):
        """
        Escapes all curly braces from a PEP-3101's format string.
        """
        escaped_string = string.replace("{", "{{").replace("}", "}}")
        return escaped_string

    def emit(self, level, format=None, **kwargs):
        if level >= GlobalLoggerSettings.log_level:
            clean_format = self.escape_format_string(str(format))
            super().emit(level=level, format=clean_format, **kwargs)


def observer_log_level_wrapper(observer: Callable[[LogEvent], None]):
    def log_level_wrapper(event: LogEvent):
        if event["log_level"] >= GlobalLoggerSettings.log_level:
            observer(event)

    return log_level_wrapper
