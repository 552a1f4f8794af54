"""
Uhrzeit- und Intervall-Primitive.

Uhrzeiten werden intern als Minuten seit Mitternacht (int) geführt, nie als
Timestamps mit Zeitzone. Damit gibt es keine Sommerzeit-Effekte und alle
Vergleiche sind reine Ganzzahl-Arithmetik.
"""
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from slotbooking.errors import InvalidArgumentError, InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

DAY_NAMES = ("SUNDAY", "MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY")

_TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")


def parse_time(value: str) -> int:
    """"HH:MM" (24h) -> Minuten seit Mitternacht."""
    match = _TIME_PATTERN.match(value) if isinstance(value, str) else None
    if not match:
        raise InvalidTimeFormat(f"Ungültige Uhrzeit '{value}', erwartet HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(f"Ungültige Uhrzeit '{value}', erwartet HH:MM")
    return hours * 60 + minutes


def format_time(minutes: int) -> str:
    """Minuten seit Mitternacht -> "HH:MM"."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidArgumentError(f"Minutenwert {minutes} liegt außerhalb eines Tages")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def weekday_of(day: date) -> int:
    """Wochentag mit Sonntag=0 ... Samstag=6 (date.weekday() hat Montag=0)."""
    return day.isoweekday() % 7


def validate_day_of_week(day_of_week: int) -> int:
    if not 0 <= day_of_week <= 6:
        raise InvalidArgumentError(f"Wochentag {day_of_week} ungültig, erlaubt sind 0 (Sonntag) bis 6 (Samstag)")
    return day_of_week


@dataclass(frozen=True)
class TimeInterval:
    day_of_week: int
    open_minute: int
    close_minute: int

    def __post_init__(self) -> None:
        validate_day_of_week(self.day_of_week)
        if self.close_minute <= self.open_minute:
            raise InvalidArgumentError(
                f"Endzeit {format_time(self.close_minute)} muss nach Startzeit {format_time(self.open_minute)} liegen"
            )

    @classmethod
    def from_strings(cls, day_of_week: int, open_time: str, close_time: str) -> "TimeInterval":
        return cls(day_of_week, parse_time(open_time), parse_time(close_time))

    @property
    def open_time(self) -> str:
        return format_time(self.open_minute)

    @property
    def close_time(self) -> str:
        return format_time(self.close_minute)


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """
    Halboffene Intervalle [open, close): Berührung an der Grenze
    (a.close == b.open) ist keine Überschneidung.
    """
    if a.day_of_week != b.day_of_week:
        return False
    return not (a.close_minute <= b.open_minute or b.close_minute <= a.open_minute)


def contiguous(a: TimeInterval, b: TimeInterval) -> bool:
    """Gerichteter Test: b schließt direkt an a an."""
    return a.close_minute == b.open_minute


def is_contiguous_chain(intervals: Iterable[TimeInterval]) -> bool:
    """Nach Startzeit sortiert eine lückenlose Kette ohne Duplikate oder Überschneidungen."""
    ordered = sorted(intervals, key=lambda i: i.open_minute)
    return all(contiguous(a, b) for a, b in zip(ordered, ordered[1:]))
