"""
Configuration exception types.

The runtime Config layer logs and absorbs these; they only escape from the
definitions loader, where a broken bootstrap file should stop the caller.
"""

from __future__ import annotations

from typing import List, Optional


class ConfigError(Exception):
    """Base class for configuration errors."""

    pass


class UnknownOptionError(ConfigError):
    """Raised when validating a value for a key that has no schema."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Unknown config option: {key}")
        self.key = key


class OptionDefinitionError(ConfigError):
    """Raised when an option declaration cannot be turned into a schema."""

    pass


class MissingSchemaTypeError(OptionDefinitionError):
    """Raised when an option declaration has no ``type``."""

    pass


class UnsupportedTypeError(OptionDefinitionError):
    """Raised when an option declaration names a type that is not accepted."""

    pass


class DefinitionsError(ConfigError):
    """
    Raised when a definitions file is invalid or cannot be loaded.

    Attributes:
        errors: One line per schema violation, naming the config and option
            it was found in (empty for read or parse failures).
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []
