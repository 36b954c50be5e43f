"""
Configuration Module.

Typed mod settings with:
- Validation (type coercion, integer flooring, range clamping).
- Persistence of changed settings to a ``key = value`` text file.
- Change/reset/load/save notifications.
- Temporary overrides used by host/remote synchronization.
- Declarative definitions in YAML/JSON.
"""

from zmu.config.configuration import LOG_LEVEL_KEY, Configuration, Role
from zmu.config.definitions import ConfigDefinition, DefinitionsLoader
from zmu.config.errors import (
    ConfigError,
    DefinitionsError,
    MissingSchemaTypeError,
    OptionDefinitionError,
    UnknownOptionError,
    UnsupportedTypeError,
)
from zmu.config.events import ConfigEvent, EventNotifier
from zmu.config.options import OptionSchema, OptionType
from zmu.config.registry import ConfigRegistry
from zmu.config.validator import validate

__all__ = [
    "LOG_LEVEL_KEY",
    "ConfigDefinition",
    "ConfigError",
    "ConfigEvent",
    "ConfigRegistry",
    "Configuration",
    "DefinitionsError",
    "DefinitionsLoader",
    "EventNotifier",
    "MissingSchemaTypeError",
    "OptionDefinitionError",
    "OptionSchema",
    "OptionType",
    "Role",
    "UnknownOptionError",
    "UnsupportedTypeError",
    "validate",
]
