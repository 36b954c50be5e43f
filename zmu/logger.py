"""
Leveled Logger Module.

Provides named loggers with their own numeric level (NONE, ERROR, WARN,
INFO, DEBUG, VERBOSE). Each line is formatted as ``"NAME LEVEL: TEXT"`` and
handed to a callback, or to loguru when no callback was supplied.

Loggers are looked up or created by name through a ``LoggerRegistry``, so
independent pieces of a mod can share one logger without globals::

    loggers = LoggerRegistry()
    log = loggers.get_or_create("MyMod", Logger.INFO)
    log.info("loaded %d options", 3)

    # elsewhere, same instance
    log = loggers.get("MyMod")
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Optional

from loguru import logger

LogCallback = Callable[[str], None]


class Logger:
    """
    A named logger gated by a numeric level.

    Messages whose level is greater than ``self.level`` are dropped. The
    level can be changed at any time by assigning to ``level``.

    Attributes:
        name: Name printed at the start of each line.
        level: Highest level that is emitted (0 disables everything).
        format: %-style template taking (name, level name, text).
    """

    NONE = 0
    ERROR = 1
    WARN = 2
    INFO = 3
    DEBUG = 4
    VERBOSE = 5

    LEVEL_NAMES = {
        NONE: "NONE",
        ERROR: "ERROR",
        WARN: "WARN",
        INFO: "INFO",
        DEBUG: "DEBUG",
        VERBOSE: "VERBOSE",
    }

    # zmu level -> loguru level name
    LOGURU_LEVELS = {
        ERROR: "ERROR",
        WARN: "WARNING",
        INFO: "INFO",
        DEBUG: "DEBUG",
        VERBOSE: "TRACE",
    }

    def __init__(
        self,
        name: str = "Logger",
        level: int = WARN,
        callback: Optional[LogCallback] = None,
    ) -> None:
        self.name = name
        self.level = level
        self.callback = callback
        self.format = "%s %s: %s"

    def log(self, level: int, text: str, *args: object) -> None:
        """
        Emit a message if ``level`` is enabled.

        Prefer the wrapper methods (``warn``, ``debug``...) over calling this
        directly.

        Args:
            level: One of the level constants.
            text: Message, optionally a %-format string.
            *args: Values for the format string.
        """
        if not level or level > self.level:
            return
        if args:
            try:
                text = text % args
            except (TypeError, ValueError):
                text = f"{text} {args!r}"
        line = self.format % (self.name, self.LEVEL_NAMES.get(level, ""), text)

        if self.callback is not None:
            try:
                self.callback(line)
            except Exception:
                logger.exception(f"Log callback of {self.name} failed for: {line}")
        else:
            logger.bind(zmu_logger=self.name).log(
                self.LOGURU_LEVELS.get(level, "INFO"), line
            )

    def verbose(self, text: str, *args: object) -> None:
        self.log(self.VERBOSE, text, *args)

    def debug(self, text: str, *args: object) -> None:
        self.log(self.DEBUG, text, *args)

    def info(self, text: str, *args: object) -> None:
        self.log(self.INFO, text, *args)

    def warn(self, text: str, *args: object) -> None:
        self.log(self.WARN, text, *args)

    def error(self, text: str, *args: object) -> None:
        self.log(self.ERROR, text, *args)

    def is_enabled(self, level: int) -> bool:
        """Check whether messages at ``level`` would be emitted."""
        return bool(level) and level <= self.level

    def __repr__(self) -> str:
        return f"Logger(name={self.name!r}, level={self.LEVEL_NAMES.get(self.level, self.level)})"


class LoggerRegistry:
    """
    Lookup-or-create store of Logger instances keyed by name.

    Replaces a process-wide logger table: whoever owns the registry decides
    its lifetime.
    """

    DEFAULT_NAME = "Logger"

    def __init__(self) -> None:
        self._loggers: Dict[str, Logger] = {}
        self._lock = threading.Lock()

    def get_or_create(
        self,
        name: Optional[str] = None,
        level: Optional[int] = None,
        callback: Optional[LogCallback] = None,
    ) -> Logger:
        """
        Return the logger named ``name``, creating it if needed.

        When the logger already exists, ``level`` and ``callback`` replace the
        current values only if they are given.

        Args:
            name: Logger name (default: "Logger").
            level: Level for a new logger, or the new level for an existing one.
            callback: Line sink; loguru is used when None.

        Returns:
            The shared Logger instance.
        """
        name = name or self.DEFAULT_NAME
        with self._lock:
            existing = self._loggers.get(name)
            if existing is not None:
                if level is not None:
                    existing.level = level
                if callback is not None:
                    existing.callback = callback
                return existing

            created = Logger(
                name,
                Logger.WARN if level is None else level,
                callback,
            )
            self._loggers[name] = created
            logger.debug(f"Logger created: {name} (level={created.level})")
            return created

    def get(self, name: Optional[str] = None) -> Optional[Logger]:
        """Look up an existing logger without creating one."""
        return self._loggers.get(name or self.DEFAULT_NAME)

    def names(self) -> list[str]:
        """List the names of all registered loggers."""
        return list(self._loggers)

    def __contains__(self, name: object) -> bool:
        return name in self._loggers

    def __len__(self) -> int:
        return len(self._loggers)
