from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass
from datetime import datetime
import logging

from .schedule import CalendarWindow
from ..core.exceptions import ScheduleParseError, RuleReferenceError
from ..core.utils import resolve_reference

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Rule:
    """A schedule rule: a calendar window and the count it asks for."""
    key: str
    period: str
    window: CalendarWindow
    priority: str
    count: int

    def is_active(self, now: datetime) -> bool:
        """True if `now` lies inside the rule's window."""
        return self.window.contains(now)

    def sort_key(self):
        return (self.priority, self.key)

def parse_rule(
    key: str,
    raw_value: str,
    separator: str,
    expressions: Dict[str, int]
) -> Rule:
    """
    Parse a `period_*` configuration entry.

    Args:
        key: Configuration key, used in error messages
        raw_value: `<window> <separator> <count or expression name>`
        separator: Token between window and reference
        expressions: Expression table for the current evaluation

    Returns:
        Parsed rule
    """
    period, found, reference = raw_value.partition(separator)
    if not found:
        raise ScheduleParseError(
            f"invalid value for `{key}`: {raw_value} (missing separator '{separator}')",
            window=raw_value
        )

    window = CalendarWindow.parse(period)

    priority = reference.strip()
    count = resolve_reference(priority, expressions)
    if count is None:
        raise RuleReferenceError(
            f"invalid value for `{key}`: {raw_value} "
            f"('{priority}' is neither an integer nor a known expression)",
            key=key,
            value=raw_value
        )

    return Rule(
        key=key,
        period=period.strip(),
        window=window,
        priority=priority,
        count=count
    )

def resolve(rules: Sequence[Rule]) -> Optional[Rule]:
    """
    Pick the winning rule among the active ones.

    Several active rules are ordered by reference token, then by key, both
    compared as strings, and the first one wins.
    """
    if not rules:
        return None
    if len(rules) == 1:
        winner = rules[0]
    else:
        winner = sorted(rules, key=Rule.sort_key)[0]
    logger.debug(
        f"selected period {winner.period!r} (priority={winner.priority}, "
        f"count={winner.count}) out of {len(rules)} active"
    )
    return winner

def active_rules(rules: Sequence[Rule], now: datetime) -> List[Rule]:
    """Rules whose window contains `now`, in input order."""
    active = []
    for rule in rules:
        in_period = rule.is_active(now)
        logger.debug(f"checking period {rule.period!r}: in_period={in_period}, priority={rule.priority}")
        if in_period:
            active.append(rule)
    return active
