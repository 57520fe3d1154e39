from typing import Dict, List, Sequence
from dataclasses import dataclass
from bisect import bisect_left
import logging

from ..core.exceptions import HysteresisConfigError
from ..core.utils import resolve_reference

logger = logging.getLogger(__name__)

def apply(band: Sequence[int], current_count: int, proposed_count: int) -> int:
    """
    Suppress a scale-down that would leave the current bracket too early.

    With a band of 2,6 and a count of 5, the count holds until the proposed
    value drops to 2 or lower. A count sitting exactly on a threshold counts
    as being in the bracket above it, so with 2,4,6 and a count of 6 the
    lower edge is 6 itself and any smaller proposal goes through.

    Args:
        band: Ascending thresholds, at least two
        current_count: Current instance count
        proposed_count: Count picked by the schedule

    Returns:
        The count to scale to
    """
    if proposed_count >= current_count:
        return proposed_count

    index = bisect_left(band, current_count)
    # a count sitting exactly on a threshold belongs to the bracket above it
    if index < len(band) and band[index] == current_count:
        index += 1

    if index > 0:
        lower = band[index - 1]
        if proposed_count > lower:
            logger.debug(
                f"hysteresis keeps count at {current_count}: "
                f"proposed {proposed_count} is above threshold {lower}"
            )
            return current_count
    return proposed_count

@dataclass(frozen=True)
class HysteresisBand:
    """Ascending thresholds used to dampen scale-down oscillation."""
    thresholds: tuple

    @classmethod
    def parse(cls, raw: str, expressions: Dict[str, int]) -> "HysteresisBand":
        """
        Parse a comma-separated band of integers or expression names.

        Raises:
            HysteresisConfigError: on an unresolvable entry, fewer than two
                entries or a descending band
        """
        thresholds: List[int] = []
        for part in raw.split(','):
            value = resolve_reference(part, expressions)
            if value is None:
                raise HysteresisConfigError(
                    f"invalid value for `hysteresis`: {raw} "
                    f"('{part.strip()}' is neither an integer nor a known expression)",
                    value=raw
                )
            thresholds.append(value)

        if len(thresholds) < 2:
            raise HysteresisConfigError(
                f"invalid value for `hysteresis`: {raw} (at least two thresholds required)",
                value=raw
            )
        if any(a > b for a, b in zip(thresholds, thresholds[1:])):
            raise HysteresisConfigError(
                f"invalid value for `hysteresis`: {raw} (thresholds must be ascending)",
                value=raw
            )
        return cls(thresholds=tuple(thresholds))

    def apply(self, current_count: int, proposed_count: int) -> int:
        return apply(self.thresholds, current_count, proposed_count)
