"""
Bidirectional maps between continuous control values (as set in HA entities)
and the small sets of discrete levels the devices actually support.
"""

import typing

from . import clamp

if typing.TYPE_CHECKING:
    from typing import Iterable


class Bucket(typing.NamedTuple):
    upper: float | None
    """upper edge of the bucket (None for the last, unbounded, one)"""
    inclusive: bool
    """True if 'upper' belongs to this bucket, False if it belongs to the next"""
    code: int
    """device level code"""
    value: int | float
    """canonical (continuous) representative for 'code'"""


class QuantizationTable:
    """
    An ordered, exhaustive and non-overlapping set of buckets covering the
    continuous domain [minimum, maximum]. Buckets are evaluated in order so
    each one starts where the previous ended. Out of domain values are clamped
    before lookup.
    """

    __slots__ = (
        "minimum",
        "maximum",
        "buckets",
        "_code_to_value",
    )

    def __init__(
        self, buckets: "Iterable[Bucket]", minimum: float = 0, maximum: float = 100
    ):
        self.minimum = minimum
        self.maximum = maximum
        self.buckets = tuple(buckets)
        if self.buckets[-1].upper is not None:
            raise ValueError("the last bucket must be unbounded")
        self._code_to_value = {bucket.code: bucket.value for bucket in self.buckets}
        if len(self._code_to_value) != len(self.buckets):
            raise ValueError("duplicated codes in quantization table")

    @property
    def codes(self):
        return self._code_to_value.keys()

    def quantize(self, value: float) -> int:
        """continuous value -> device code"""
        value = clamp(value, self.minimum, self.maximum)
        for bucket in self.buckets:
            upper = bucket.upper
            if (
                upper is None
                or value < upper
                or (bucket.inclusive and value == upper)
            ):
                return bucket.code
        raise AssertionError("unreachable")  # the last bucket is unbounded

    def to_value(self, code: int) -> int | float:
        """device code -> canonical continuous value. Raises ValueError for unknown codes"""
        try:
            return self._code_to_value[code]
        except KeyError:
            raise ValueError(f"Unknown device code ({code})")

    def normalize(self, value: float) -> int | float:
        """Returns the canonical representative for the bucket hit by value"""
        return self._code_to_value[self.quantize(value)]


def round_half_up(value: float) -> int:
    """Rounds .5 up as devices (and their apps) do (python round is 'bankers')."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def quantize_step(value: float, step: int, minimum: int = 0, maximum: int = 100):
    """Snaps value to the nearest multiple of step inside [minimum, maximum]."""
    if step <= 1:
        return clamp(round_half_up(value), minimum, maximum)
    return clamp(round_half_up(value / step) * step, minimum, maximum)
