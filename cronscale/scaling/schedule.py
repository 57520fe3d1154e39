from typing import Dict, FrozenSet, List, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..core.exceptions import ScheduleParseError
from ..core.utils import TimeUtils

MONTH_NAMES = {
    name: number for number, name in enumerate(
        ['jan', 'feb', 'mar', 'apr', 'may', 'jun',
         'jul', 'aug', 'sep', 'oct', 'nov', 'dec'],
        start=1
    )
}

WEEKDAY_NAMES = {
    name: number for number, name in enumerate(
        ['sun', 'mon', 'tue', 'wed', 'thu', 'fri', 'sat']
    )
}

class CalendarComponent(Enum):
    """Calendar components a window constrains, in window order."""
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY_OF_MONTH = "day_of_month"
    MONTH = "month"
    DAY_OF_WEEK = "day_of_week"
    YEAR = "year"

@dataclass(frozen=True)
class FieldSpec:
    """Bounds and accepted names of one window field."""
    component: CalendarComponent
    low: int
    high: int
    names: Dict[str, int] = field(default_factory=dict)

FIELD_SPECS: Tuple[FieldSpec, ...] = (
    FieldSpec(CalendarComponent.SECOND, 0, 59),
    FieldSpec(CalendarComponent.MINUTE, 0, 59),
    FieldSpec(CalendarComponent.HOUR, 0, 23),
    FieldSpec(CalendarComponent.DAY_OF_MONTH, 1, 31),
    FieldSpec(CalendarComponent.MONTH, 1, 12, MONTH_NAMES),
    # 0 and 7 are both Sunday
    FieldSpec(CalendarComponent.DAY_OF_WEEK, 0, 7, WEEKDAY_NAMES),
    FieldSpec(CalendarComponent.YEAR, 1970, 2099),
)

WILDCARDS = ('*', '?')

def _component_value(component: CalendarComponent, now: datetime) -> int:
    if component == CalendarComponent.SECOND:
        return now.second
    if component == CalendarComponent.MINUTE:
        return now.minute
    if component == CalendarComponent.HOUR:
        return now.hour
    if component == CalendarComponent.DAY_OF_MONTH:
        return now.day
    if component == CalendarComponent.MONTH:
        return now.month
    if component == CalendarComponent.DAY_OF_WEEK:
        return TimeUtils.cron_weekday(now)
    return now.year

class FieldParser:
    """Parses the text of a single window field into the set of values it allows."""

    def __init__(self, spec: FieldSpec, window: str):
        self.spec = spec
        self.window = window

    def parse(self, text: str) -> Optional[FrozenSet[int]]:
        """
        Parse a field.

        Returns:
            None for an unrestricted wildcard, otherwise the allowed values
        """
        if text in WILDCARDS:
            return None

        values = set()
        for item in text.split(','):
            values.update(self._parse_item(item))

        if self.spec.component == CalendarComponent.DAY_OF_WEEK and 7 in values:
            values.discard(7)
            values.add(0)
        return frozenset(values)

    def _fail(self, message: str):
        raise ScheduleParseError(
            f"Invalid {self.spec.component.value} field in '{self.window}': {message}",
            window=self.window,
            field_name=self.spec.component.value
        )

    def _parse_item(self, item: str) -> List[int]:
        if not item:
            self._fail("empty list item")

        step = 1
        if '/' in item:
            item, _, step_text = item.partition('/')
            if not (step_text.isascii() and step_text.isdigit()) or int(step_text) == 0:
                self._fail(f"invalid step '{step_text}'")
            step = int(step_text)

        if item in WILDCARDS:
            start, end = self.spec.low, self.spec.high
        elif '-' in item:
            start_text, _, end_text = item.partition('-')
            start, end = self._parse_value(start_text), self._parse_value(end_text)
        else:
            start = self._parse_value(item)
            end = self.spec.high if step > 1 else start

        return self._expand(start, end)[::step]

    def _expand(self, start: int, end: int) -> List[int]:
        if start <= end:
            return list(range(start, end + 1))
        # wrapping range such as 22-2
        return list(range(start, self.spec.high + 1)) + list(range(self.spec.low, end + 1))

    def _parse_value(self, text: str) -> int:
        lowered = text.lower()
        if lowered in self.spec.names:
            return self.spec.names[lowered]
        if not (text.isascii() and text.isdigit()):
            self._fail(f"invalid value '{text}'")
        value = int(text)
        if value < self.spec.low or value > self.spec.high:
            self._fail(f"value {value} out of range {self.spec.low}-{self.spec.high}")
        return value

@dataclass(frozen=True)
class CalendarWindow:
    """
    A calendar window: for every calendar component, the set of values an
    instant must have to lie inside the window. None means any value.
    """
    expression: str
    fields: Tuple[Optional[FrozenSet[int]], ...]

    @classmethod
    def parse(cls, expression: str) -> "CalendarWindow":
        """
        Parse a window of the form `sec min hour dom month dow year`.

        Six fields omit the seconds, five fields omit seconds and year.
        """
        parts = expression.split()
        if len(parts) == 5:
            parts = ['*'] + parts + ['*']
        elif len(parts) == 6:
            parts = ['*'] + parts
        elif len(parts) != 7:
            raise ScheduleParseError(
                f"Expected 5, 6 or 7 fields in '{expression}', got {len(parts)}",
                window=expression
            )

        fields = tuple(
            FieldParser(spec, expression).parse(text)
            for spec, text in zip(FIELD_SPECS, parts)
        )
        return cls(expression=expression.strip(), fields=fields)

    def contains(self, now: datetime) -> bool:
        """True if every component of `now` is allowed by the window."""
        for spec, allowed in zip(FIELD_SPECS, self.fields):
            if allowed is not None and _component_value(spec.component, now) not in allowed:
                return False
        return True
