import re
import logging
from typing import Callable, Dict, Optional, Union
from datetime import datetime, timezone

_INTEGER_PATTERN = re.compile(r'^[+-]?\d+$')

class TimeUtils:
    """Utility class for time-related operations."""

    @staticmethod
    def get_utc_now() -> datetime:
        """Get current UTC timestamp."""
        return datetime.now(timezone.utc)

    @staticmethod
    def resolve_now(now: Optional[Union[datetime, Callable[[], datetime]]] = None) -> datetime:
        """Turn a datetime, a zero-argument clock or None into a datetime."""
        if now is None:
            return TimeUtils.get_utc_now()
        if callable(now):
            return now()
        return now

    @staticmethod
    def cron_weekday(dt: datetime) -> int:
        """Day of week with Sunday = 0, as cron counts it."""
        return (dt.weekday() + 1) % 7

def parse_integer(token: str) -> Optional[int]:
    """Parse a base-10 integer literal, returning None if it is not one."""
    token = token.strip()
    if not _INTEGER_PATTERN.match(token):
        return None
    return int(token)

def resolve_reference(token: str, expressions: Dict[str, int]) -> Optional[int]:
    """
    Resolve a reference token to an integer.

    Args:
        token: Integer literal or expression name
        expressions: Expression table for the current evaluation

    Returns:
        The resolved value, or None if the token is neither
    """
    value = parse_integer(token)
    if value is not None:
        return value
    return expressions.get(token.strip())

def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logging with the CronScale format."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
