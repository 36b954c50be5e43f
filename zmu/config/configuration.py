"""
Configuration Module.

A Configuration is a named bag of typed settings. Options are declared once
with a type, bounds and default; settings only change through validated
operations, each of which notifies subscribers after the change is
committed::

    registry = ConfigRegistry()
    config = registry.create("ZMU")

    config.add("BoolTest", {"type": "boolean", "default": True})
    config.add("FloatTest", {"type": "float", "min": 0.1, "default": 0.6})
    config.add("IntTest", {"type": "integer", "min": 0, "max": 100, "default": 50})

    config.set("BoolTest", False)
    config.set("FloatTest", False)  # wrong type, falls back to 0.6
    config.set("IntTest", 101)      # out of range, clamped to 100

    config.save("testing.ini")      # FloatTest is left out, it equals its default
    config.reset()
    config.load("testing.ini")

Expected failures (unknown keys, bad values, unreadable files) are logged
through the configuration's Logger and never raised to the caller.
"""

from __future__ import annotations

import threading
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Union

from zmu.config import persistence
from zmu.config.errors import OptionDefinitionError
from zmu.config.events import ConfigEvent, EventNotifier
from zmu.config.options import OptionSchema, SettingValue
from zmu.config.validator import validate
from zmu.logger import Logger

if TYPE_CHECKING:
    from zmu.config.registry import ConfigRegistry

LOG_LEVEL_KEY = "LogLevel"


class Role(Enum):
    """Sync role of the running process."""

    HOST = "host"
    REMOTE = "remote"


class Configuration:
    """
    Named settings registry with validation, persistence and temporary
    overrides.

    Prefer ``ConfigRegistry.create`` over instantiating this directly: the
    registry guarantees unique names and supplies the shared logger table,
    event notifier and process role.

    Attributes:
        name: Unique name within the owning registry.
        logger: Logger used for all messages; its level follows the
            ``LogLevel`` setting.
        events: Notifier receiving change/reset/load/save events.
    """

    def __init__(
        self,
        name: str,
        logger: Logger,
        events: Optional[EventNotifier] = None,
        registry: Optional["ConfigRegistry"] = None,
    ) -> None:
        self.name = name
        self.logger = logger
        self.events = events or EventNotifier()
        self._registry = registry
        self._lock = threading.RLock()
        self._options: Dict[str, OptionSchema] = {
            LOG_LEVEL_KEY: OptionSchema.from_mapping(
                {"type": "integer", "min": Logger.NONE, "max": Logger.VERBOSE, "default": logger.level}
            ),
        }
        self._settings: Dict[str, SettingValue] = {LOG_LEVEL_KEY: logger.level}
        self._previous_settings: Optional[Dict[str, SettingValue]] = None

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def add(self, key: str, declaration: Union[OptionSchema, Mapping[str, Any]]) -> bool:
        """
        Declare a new option and set it to its default.

        Args:
            key: Option name.
            declaration: ``OptionSchema`` or a mapping with ``type`` and
                optional ``min``, ``max``, ``default``.

        Returns:
            True if the option was registered, False if it was rejected
            (already declared, or missing/unsupported type).
        """
        self.logger.verbose("Adding config option %s", key)
        with self._lock:
            if key in self._options:
                self.logger.error("Config option %s already exists", key)
                return False
            try:
                schema = OptionSchema.coerce(declaration)
            except OptionDefinitionError as e:
                self.logger.error("Config option %s %s", key, e)
                return False

            if isinstance(declaration, Mapping) and declaration.get("default") is None:
                self.logger.warn(
                    "Config option %s has no default, using %s", key, schema.default
                )

            self._options[key] = schema
            self._settings[key] = schema.default
            return True

    def option(self, key: str) -> Optional[OptionSchema]:
        """Return the schema for ``key``, or None."""
        return self._options.get(key)

    def options_table(self) -> Dict[str, OptionSchema]:
        """Return the live mapping of option schemas."""
        return self._options

    def settings_table(self) -> Dict[str, SettingValue]:
        """Return the live mapping of current settings."""
        return self._settings

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[SettingValue]:
        """Return the current value of ``key``, or None if undeclared."""
        return self._settings.get(key)

    def default(self, key: str) -> Optional[SettingValue]:
        """Return the default value of ``key``, or None if undeclared."""
        option = self._options.get(key)
        return None if option is None else option.default

    def validate(self, key: str, value: Any) -> Optional[SettingValue]:
        """
        Return a valid version of ``value`` for option ``key``.

        Called automatically by ``set``. Logs an error and returns None if
        ``key`` is not declared.
        """
        option = self._options.get(key)
        if option is None:
            self.logger.error("Attempted to validate non-existent config option %s", key)
            return None
        return validate(option, value, key, self.logger)

    def set(self, key: str, value: Any) -> Optional[bool]:
        """
        Change a setting after validating it.

        Fires ``ConfigEvent.CHANGE`` with the committed value.

        Returns:
            True if the value changed, False if the validated value equals the
            current one, None if ``key`` is not declared.
        """
        with self._lock:
            option = self._options.get(key)
            if option is None:
                self.logger.warn(
                    "Attempting set unknown config key %s to %s", key, value
                )
                return None

            self.logger.verbose("Attempting set config %s to %s", key, value)
            current = self._settings[key]
            value = validate(option, value, key, self.logger)
            if current == value:
                self.logger.verbose("Config change key cancelled %s to %s", key, value)
                return False

            self._settings[key] = value
            self._sync_log_level()
            self.logger.debug("Config key %s set to %s", key, value)
            self.events.fire(ConfigEvent.CHANGE, self, key, value)
            return True

    def reset(self) -> None:
        """Set every option back to its default and fire ``ConfigEvent.RESET``."""
        with self._lock:
            self.logger.debug("Resetting config options to default values")
            for key, option in self._options.items():
                self._settings[key] = option.default
            self._sync_log_level()
            self.events.fire(ConfigEvent.RESET, self)

    def _sync_log_level(self) -> None:
        self.logger.level = self._settings[LOG_LEVEL_KEY]

    # ------------------------------------------------------------------
    # Temporary overrides
    # ------------------------------------------------------------------

    def apply_temp(self, settings: Mapping[str, Any]) -> None:
        """
        Apply ``settings`` on top of the current ones, remembering what was
        there before the first temporary apply.

        Nested calls do not stack: ``remove_temp`` always restores the
        settings that were in effect before the first ``apply_temp``.
        """
        with self._lock:
            self.logger.debug("Applying temporary config settings")
            if self._previous_settings is None:
                self._previous_settings = dict(self._settings)
            for key, value in settings.items():
                self.set(key, value)

    def remove_temp(self) -> bool:
        """
        Restore the settings saved by the first ``apply_temp``.

        Returns:
            True if a snapshot was restored.
        """
        with self._lock:
            self.logger.debug("Removing temporary config settings")
            if self._previous_settings is None:
                return False
            previous, self._previous_settings = self._previous_settings, None
            for key, value in previous.items():
                self.set(key, value)
            return True

    @property
    def has_temp(self) -> bool:
        """Whether a temporary override is currently applied."""
        return self._previous_settings is not None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @property
    def role(self) -> Role:
        """Sync role of the owning registry (HOST when standalone)."""
        if self._registry is None:
            return Role.HOST
        return self._registry.role

    def load(self, path: Union[str, Path]) -> bool:
        """
        Load settings from a file and fire ``ConfigEvent.LOADED``.

        A missing file is a silent no-op.

        Returns:
            True if the file was read.
        """
        with self._lock:
            if not persistence.read_settings(self, path):
                return False
            self.events.fire(ConfigEvent.LOADED, self, str(path))
            return True

    def save(self, path: Union[str, Path]) -> bool:
        """
        Save the non-default and previously loaded settings, then fire
        ``ConfigEvent.SAVED``.

        Only the host persists: a remote holds settings pushed by the host and
        must not overwrite its own file with them.

        Returns:
            True if the file was written.
        """
        with self._lock:
            if self.role is Role.REMOTE:
                self.logger.debug("Not saving config file %s on a remote", path)
                return False
            if not persistence.write_settings(self, path):
                return False
            self.events.fire(ConfigEvent.SAVED, self, str(path))
            return True

    def __repr__(self) -> str:
        return f"Configuration(name={self.name!r}, options={len(self._options)})"
