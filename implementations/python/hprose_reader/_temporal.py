"""Date/time value with nanosecond resolution.

``datetime.datetime`` stops at microseconds, and the wire carries up to nine
fraction digits, so decoded dates land in this small frozen value type.
Fields are kept exactly as read; ``to_datetime`` is where calendar
validation happens.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass


@dataclass(frozen=True)
class DateTime:
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0
    nanosecond: int = 0
    utc: bool = False  # False means a floating (unspecified) zone

    @property
    def microsecond(self) -> int:
        return self.nanosecond // 1000

    def to_datetime(self) -> datetime.datetime:
        """Convert to ``datetime.datetime``, truncating to microseconds.

        UTC values come back aware (``timezone.utc``); floating values come
        back naive.  Raises ValueError for out-of-range calendar fields.
        """
        return datetime.datetime(
            self.year, self.month, self.day,
            self.hour, self.minute, self.second, self.microsecond,
            tzinfo=datetime.timezone.utc if self.utc else None,
        )

    def isoformat(self) -> str:
        text = "{:04d}-{:02d}-{:02d}T{:02d}:{:02d}:{:02d}".format(
            self.year, self.month, self.day, self.hour, self.minute, self.second)
        if self.nanosecond:
            text += ".{:09d}".format(self.nanosecond).rstrip("0")
        if self.utc:
            text += "Z"
        return text

    def __str__(self) -> str:
        return self.isoformat()
