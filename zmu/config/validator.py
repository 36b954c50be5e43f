"""
Value Validator.

Coerces a raw value into one that satisfies an ``OptionSchema``. Invalid
input never raises: it is replaced by the default, floored, or clamped, and
the correction is reported through the supplied logger.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Optional

from zmu.config.errors import UnknownOptionError
from zmu.config.options import OptionSchema, OptionType, SettingValue
from zmu.logger import Logger
from zmu.utils import clamp


def validate(
    schema: Optional[OptionSchema],
    value: Any,
    key: str = "",
    log: Optional[Logger] = None,
) -> SettingValue:
    """
    Return a valid version of ``value`` for ``schema``.

    Steps, in order:
        1. Wrong primitive kind: use ``schema.default``.
        2. Integer option with a fractional number: floor it.
        3. Numeric option outside ``min``/``max``: clamp it.

    Args:
        schema: Schema of the option being set.
        value: Raw value (any type).
        key: Option name, used in log messages.
        log: Logger receiving correction messages.

    Returns:
        The value to commit, always of the schema's type and within bounds.

    Raises:
        UnknownOptionError: If ``schema`` is None.
    """
    if schema is None:
        raise UnknownOptionError(key)

    option_type = schema.type
    if log is not None:
        log.verbose("Validating config key %s", key)

    if not option_type.matches(value):
        if log is not None:
            log.error(
                "Config %s is invalid type (value %s should be type %s). Setting to default %s",
                key, _text(value), option_type.value, _text(schema.default),
            )
        value = schema.default

    if option_type is OptionType.INTEGER:
        floored = math.floor(value)
        if floored != value and log is not None:
            log.error(
                "Config %s is invalid type (value %s should be integer not float). Setting to %s",
                key, _text(value), floored,
            )
        value = int(floored)
    elif option_type is OptionType.FLOAT:
        value = float(value)

    if option_type.is_numeric:
        minimum, maximum = schema.min, schema.max
        if option_type is OptionType.INTEGER:
            minimum = _whole_bound(minimum, math.ceil)
            maximum = _whole_bound(maximum, math.floor)
        clamped = clamp(value, minimum, maximum)
        if clamped != value:
            if log is not None:
                log.error(
                    "Config %s is invalid range (value %s should be between min:%s, max:%s). Setting to %s",
                    key, _text(value), _bound(schema.min), _bound(schema.max), _text(clamped),
                )
            value = int(clamped) if option_type is OptionType.INTEGER else float(clamped)

    return value


def _text(value: Any) -> str:
    """Render a value the way it is written to settings files."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _bound(value: Any) -> str:
    return "" if value is None else str(value)


def _whole_bound(bound: Any, rounding: Callable[[float], int]) -> Any:
    """Round a fractional bound inwards so integer results stay within it."""
    if bound is None or isinstance(bound, int) or not math.isfinite(bound):
        return bound
    return rounding(bound)
