from typing import Callable, Dict, Mapping, Optional, Union
from datetime import datetime
import logging

from .target_calculator import TargetCountCalculator
from ..analysis.expression import ExpressionEvaluator
from ..api.models import ScaleDirection, ScalingCheckEvaluation
from ..core.config import DEFAULT_SEPARATOR, CONFIG_KEY_SEPARATOR, read_separator
from ..core.exceptions import ConfigurationValidationError, CronScaleException, handle_exception

PLUGIN_NAME = "cron"
PLUGIN_TYPE = "strategy"

class CronStrategy:
    """
    Scaling strategy driven by calendar windows, expressions and a
    hysteresis band.
    """

    def __init__(self, evaluator: Optional[ExpressionEvaluator] = None):
        self.logger = logging.getLogger(__name__)
        self.evaluator = evaluator
        self.separator = DEFAULT_SEPARATOR

    def plugin_info(self) -> Dict[str, str]:
        """Name and type of the strategy."""
        return {'name': PLUGIN_NAME, 'plugin_type': PLUGIN_TYPE}

    def set_config(self, config: Optional[Mapping[str, str]]):
        """
        Apply the strategy-level configuration.

        Args:
            config: Strategy options; only `separator` is read
        """
        separator = read_separator(config)
        if not separator:
            raise ConfigurationValidationError(
                "Separator must not be empty",
                invalid_keys=[CONFIG_KEY_SEPARATOR]
            )
        self.separator = separator

    def calculate_direction(self, count: int, target: int) -> ScaleDirection:
        """Direction of scaling, if any."""
        if count == target:
            return ScaleDirection.NONE
        elif count < target:
            return ScaleDirection.UP
        return ScaleDirection.DOWN

    def run(
        self,
        evaluation: ScalingCheckEvaluation,
        count: int,
        now: Optional[Union[datetime, Callable[[], datetime]]] = None
    ) -> ScalingCheckEvaluation:
        """
        Run the strategy for one scaling check.

        Args:
            evaluation: Scaling check with its metrics
            count: Current instance count
            now: Instant to evaluate at, or a clock; defaults to UTC now

        Returns:
            The evaluation with its action filled in
        """
        calculator = TargetCountCalculator(self.separator, self.evaluator)
        try:
            target = calculator.calculate(
                evaluation.check.strategy.config,
                count,
                evaluation.metrics,
                now
            )
        except CronScaleException as e:
            self.logger.error(
                f"cron strategy failed for check {evaluation.check.name}: {handle_exception(e)['error']}"
            )
            raise

        direction = self.calculate_direction(count, target)
        evaluation.action.direction = direction
        if direction == ScaleDirection.NONE:
            return evaluation

        self.logger.debug(
            f"calculated scaling strategy results: check_name={evaluation.check.name} "
            f"current_count={count} new_count={target} direction={direction.value}"
        )

        evaluation.action.count = target
        evaluation.action.reason = f"scaling {direction.value} because cron value is {target}"
        return evaluation
