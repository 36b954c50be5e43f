"""Small numeric helpers shared across modules."""

from __future__ import annotations

from typing import Optional, Union

Number = Union[int, float]


def clamp(value: Number, minimum: Optional[Number] = None, maximum: Optional[Number] = None) -> Number:
    """
    Clamp a number into [minimum, maximum].

    Either bound may be None, in which case that side is left open.
    """
    if minimum is not None and value < minimum:
        value = minimum
    if maximum is not None and value > maximum:
        value = maximum
    return value
