"""
Option Schema Module.

Declares the type, bounds and default of a single configuration setting.
Values themselves are plain Python ``int``, ``float``, ``bool`` or ``str``;
the ``OptionType`` of their schema says which one is expected.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from zmu.config.errors import MissingSchemaTypeError, UnsupportedTypeError

SettingValue = Union[int, float, bool, str]


class OptionType(Enum):
    """Accepted setting types."""

    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"

    @property
    def is_numeric(self) -> bool:
        return self in (OptionType.INTEGER, OptionType.FLOAT)

    @property
    def zero_value(self) -> SettingValue:
        """Fallback default for declarations that omit one."""
        return _ZERO_VALUES[self]

    def matches(self, value: Any) -> bool:
        """
        Check whether ``value`` has the primitive kind this type requires.

        Integer and float options share the "number" kind, so a float is
        acceptable for an integer option (it gets floored later). ``bool`` is
        never a number here even though Python makes it an ``int`` subclass.
        Numbers that are not finite, or too large to convert to a float, are
        rejected for numeric options.
        """
        if self.is_numeric:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return False
            try:
                return math.isfinite(value)
            except OverflowError:
                return False
        if self is OptionType.BOOLEAN:
            return isinstance(value, bool)
        return isinstance(value, str)

    @classmethod
    def parse(cls, raw: Any) -> "OptionType":
        """
        Convert a declared type (enum member or its string value).

        Raises:
            MissingSchemaTypeError: If ``raw`` is None or empty.
            UnsupportedTypeError: If ``raw`` is not one of the accepted types.
        """
        if isinstance(raw, cls):
            return raw
        if raw is None or raw == "":
            raise MissingSchemaTypeError("is missing data type")
        try:
            return cls(raw)
        except ValueError:
            raise UnsupportedTypeError(
                f"is invalid data type {raw!r} "
                f"(accepted: {', '.join(t.value for t in cls)})"
            ) from None


_ZERO_VALUES: Dict[OptionType, SettingValue] = {
    OptionType.INTEGER: 0,
    OptionType.FLOAT: 0.0,
    OptionType.BOOLEAN: False,
    OptionType.STRING: "",
}


@dataclass
class OptionSchema:
    """
    Schema for one configuration key.

    Attributes:
        type: Expected value type.
        default: Value used by reset and as the fallback for invalid input.
        min: Lower bound (numeric types only).
        max: Upper bound (numeric types only).
        was_loaded: Set while the current load pass read this key from file,
            so that the next save writes it even when it equals the default.
    """

    type: OptionType
    default: SettingValue
    min: Optional[Union[int, float]] = None
    max: Optional[Union[int, float]] = None
    was_loaded: bool = field(default=False, compare=False, repr=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "OptionSchema":
        """
        Build a schema from a declaration such as
        ``{"type": "integer", "min": 0, "max": 100, "default": 50}``.

        ``min``/``max`` are dropped for non-numeric types.

        Raises:
            MissingSchemaTypeError: If ``type`` is absent.
            UnsupportedTypeError: If ``type`` is not accepted.
        """
        option_type = OptionType.parse(data.get("type"))
        default = data.get("default")
        if default is None:
            default = option_type.zero_value

        if option_type.is_numeric:
            minimum, maximum = data.get("min"), data.get("max")
        else:
            minimum = maximum = None

        return cls(type=option_type, default=default, min=minimum, max=maximum)

    @classmethod
    def coerce(cls, declaration: Union["OptionSchema", Mapping[str, Any]]) -> "OptionSchema":
        """
        Accept either a ready schema or a mapping declaration.

        A schema instance is copied, so the caller's object (and its
        ``was_loaded`` flag) is never shared between configurations.
        """
        if isinstance(declaration, OptionSchema):
            option_type = OptionType.parse(declaration.type)
            if option_type.is_numeric:
                return replace(declaration, type=option_type, was_loaded=False)
            return replace(declaration, type=option_type, min=None, max=None, was_loaded=False)
        return cls.from_mapping(declaration)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to declaration form."""
        data: Dict[str, Any] = {"type": self.type.value, "default": self.default}
        if self.min is not None:
            data["min"] = self.min
        if self.max is not None:
            data["max"] = self.max
        return data
