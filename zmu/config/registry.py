"""
Configuration Registry Module.

The registry is the context object that owns every Configuration of a
process, keyed by unique name, together with the pieces they share: the
logger table, the event notifier and the process's sync role. Pass it to
whatever needs to look configurations up (sync endpoints, loaders) instead
of relying on module-level state.
"""

from __future__ import annotations

import threading
from typing import Dict, Iterator, List, Optional

from loguru import logger as log

from zmu.config.configuration import Configuration, Role
from zmu.config.events import EventNotifier
from zmu.logger import Logger, LoggerRegistry


class ConfigRegistry:
    """
    Registry of named Configurations.

    Usage::

        registry = ConfigRegistry(role=Role.REMOTE)
        config = registry.create("ZMU")
        other = registry.create("ZMU")   # named "ZMU1"
        registry.get("ZMU") is config    # True

    Attributes:
        role: HOST (authoritative, persists settings) or REMOTE.
        loggers: Logger table used when ``create`` is not given a logger.
        events: Notifier shared by every Configuration in this registry.
    """

    DEFAULT_NAME = "Config"

    def __init__(
        self,
        role: Role = Role.HOST,
        loggers: Optional[LoggerRegistry] = None,
        events: Optional[EventNotifier] = None,
    ) -> None:
        self.role = role
        self.loggers = loggers or LoggerRegistry()
        self.events = events or EventNotifier()
        self._configs: Dict[str, Configuration] = {}
        self._lock = threading.Lock()
        log.debug(f"ConfigRegistry initialized (role={role.value})")

    def create(self, name: Optional[str] = None, logger: Optional[Logger] = None) -> Configuration:
        """
        Create and register a new Configuration.

        If ``name`` is taken, the first free of ``name1``, ``name2``, ... is
        used instead. If no logger is given, the logger with the requested
        (unsuffixed) name is fetched or created.

        Args:
            name: Requested configuration name (default: "Config").
            logger: Logger for the configuration.

        Returns:
            The new Configuration.
        """
        base_name = name or self.DEFAULT_NAME
        logger = logger or self.loggers.get_or_create(base_name)

        with self._lock:
            unique_name = self._unique_name(base_name)
            config = Configuration(unique_name, logger, events=self.events, registry=self)
            self._configs[unique_name] = config

        if unique_name != base_name:
            log.debug(f"Config name '{base_name}' taken, registered as '{unique_name}'")
        log.debug(f"Config registered: {unique_name}")
        return config

    def _unique_name(self, base_name: str) -> str:
        if base_name not in self._configs:
            return base_name
        counter = 1
        while f"{base_name}{counter}" in self._configs:
            counter += 1
        return f"{base_name}{counter}"

    def get(self, name: str) -> Optional[Configuration]:
        """Return the Configuration registered as ``name``, or None."""
        return self._configs.get(name)

    def all_configs(self) -> Dict[str, Configuration]:
        """Return a snapshot mapping of every registered Configuration."""
        return dict(self._configs)

    def names(self) -> List[str]:
        """List registered names in creation order."""
        return list(self._configs)

    def __contains__(self, name: object) -> bool:
        return name in self._configs

    def __iter__(self) -> Iterator[Configuration]:
        return iter(list(self._configs.values()))

    def __len__(self) -> int:
        return len(self._configs)
