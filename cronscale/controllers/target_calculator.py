from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union
from datetime import datetime
import logging

from ..analysis.expression import ExpressionEvaluator, FormulaEvaluator, evaluate_expression
from ..core.config import StrategyConfig, DEFAULT_SEPARATOR, CONFIG_KEY_COUNT
from ..core.exceptions import CountReferenceError, ExpressionError, NegativeCountError
from ..core.utils import TimeUtils, resolve_reference
from ..monitoring.metrics import TimestampedMetric
from ..scaling.hysteresis import HysteresisBand
from ..scaling.rule import Rule, active_rules, parse_rule, resolve

# Used when `count` is not configured at all.
FALLBACK_COUNT = 1

Clock = Callable[[], datetime]

class TargetCountCalculator:
    """
    Computes the target count of a scaling check from its schedule,
    expressions and hysteresis band.

    Every call builds its own expression table, rules and band, so a single
    calculator can serve concurrent evaluations.
    """

    def __init__(
        self,
        separator: str = DEFAULT_SEPARATOR,
        evaluator: Optional[ExpressionEvaluator] = None
    ):
        self.separator = separator
        self.evaluator = evaluator or FormulaEvaluator()
        self.logger = logging.getLogger(__name__)

    def calculate(
        self,
        config: Union[StrategyConfig, Mapping[str, str]],
        current_count: int,
        metrics: Sequence[TimestampedMetric],
        now: Optional[Union[datetime, Clock]] = None
    ) -> int:
        """
        Calculate the target count.

        Args:
            config: Strategy configuration, typed or as a raw string map
            current_count: Current instance count
            metrics: Metric samples for the check
            now: Instant to evaluate at, or a clock returning it; defaults to UTC now

        Returns:
            Target count
        """
        if not isinstance(config, StrategyConfig):
            config = StrategyConfig.from_mapping(config)
        now = TimeUtils.resolve_now(now)

        expressions = self.build_expression_table(config, current_count, metrics)
        value = self.resolve_default_count(config, expressions)

        band = None
        if config.hysteresis is not None:
            band = HysteresisBand.parse(config.hysteresis, expressions)

        rules = self.parse_rules(config, expressions)
        winner = resolve(active_rules(rules, now))
        if winner is not None:
            value = winner.count

        if band is not None:
            value = band.apply(current_count, value)

        if value < 0:
            raise NegativeCountError(
                f"target count must not be negative, got {value}",
                target_count=value
            )
        return value

    def build_expression_table(
        self,
        config: StrategyConfig,
        current_count: int,
        metrics: Sequence[TimestampedMetric]
    ) -> Dict[str, int]:
        """Evaluate every expression; failing ones are logged and left out."""
        table = {}
        for entry in config.expressions:
            try:
                table[entry.name] = evaluate_expression(
                    entry.value,
                    current_count,
                    metrics,
                    evaluator=self.evaluator
                )
            except ExpressionError as e:
                self.logger.warning(
                    f"could not evaluate expression {entry.name!r} ({entry.value}): {e.message}"
                )
        return table

    def resolve_default_count(self, config: StrategyConfig, expressions: Dict[str, int]) -> int:
        if config.count is None:
            return FALLBACK_COUNT
        value = resolve_reference(config.count, expressions)
        if value is None:
            raise CountReferenceError(
                f"invalid value for `{CONFIG_KEY_COUNT}`: {config.count}",
                value=config.count
            )
        return value

    def parse_rules(self, config: StrategyConfig, expressions: Dict[str, int]) -> List[Rule]:
        rules = []
        for entry in config.periods:
            rules.append(parse_rule(
                config.period_key(entry),
                entry.value,
                self.separator,
                expressions
            ))
        return rules
