from typing import Dict, List, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import numpy as np

class AggregationType(Enum):
    """Aggregates exposed to expressions, keyed by variable name."""
    MAX = "MetricsMax"
    MIN = "MetricsMin"
    AVG = "MetricsAvg"
    SUM = "MetricsSum"
    MEDIAN = "MetricsMedian"
    FIRST = "MetricsFirst"
    LAST = "MetricsLast"
    COUNT = "MetricsCount"

@dataclass(frozen=True)
class TimestampedMetric:
    """A single metric sample."""
    timestamp: datetime
    value: float

TimestampedMetrics = List[TimestampedMetric]

class MetricAggregator:
    """Computes the aggregates of a metric series that formulas can refer to."""

    @staticmethod
    def ordered(metrics: Sequence[TimestampedMetric]) -> TimestampedMetrics:
        """Samples sorted by timestamp; samples sharing a timestamp keep their order."""
        return sorted(metrics, key=lambda m: m.timestamp)

    @classmethod
    def aggregate(cls, metrics: Sequence[TimestampedMetric]) -> Dict[str, float]:
        """
        Aggregate a metric series.

        Args:
            metrics: Samples to aggregate, in any order

        Returns:
            Mapping from AggregationType value to aggregate. Every aggregate of
            an empty series is 0.
        """
        if not metrics:
            return {aggregation.value: 0.0 for aggregation in AggregationType}

        series = cls.ordered(metrics)
        values = np.array([m.value for m in series], dtype=float)

        return {
            AggregationType.MAX.value: float(np.max(values)),
            AggregationType.MIN.value: float(np.min(values)),
            AggregationType.AVG.value: float(np.mean(values)),
            AggregationType.SUM.value: float(np.sum(values)),
            AggregationType.MEDIAN.value: float(np.median(values)),
            AggregationType.FIRST.value: float(values[0]),
            AggregationType.LAST.value: float(values[-1]),
            AggregationType.COUNT.value: float(len(values)),
        }
