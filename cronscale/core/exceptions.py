from typing import Optional, Any
from datetime import datetime, timezone

class CronScaleException(Exception):
    """Base exception class for all CronScale exceptions."""

    def __init__(self, message: str, error_code: str, details: Optional[dict] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary format for logging and API responses."""
        return {
            'error_code': self.error_code,
            'message': self.message,
            'details': self.details,
            'timestamp': self.timestamp.isoformat(),
            'type': self.__class__.__name__
        }

# Configuration Exceptions
class ConfigurationException(CronScaleException):
    """Base class for configuration-related exceptions."""
    pass

class ConfigurationLoadError(ConfigurationException):
    """Raised when configuration loading fails."""
    def __init__(self, message: str, config_path: str):
        super().__init__(
            message=message,
            error_code='CONFIG_LOAD_ERROR',
            details={'config_path': config_path}
        )

class ConfigurationValidationError(ConfigurationException):
    """Raised when configuration validation fails."""
    def __init__(self, message: str, invalid_keys: list):
        super().__init__(
            message=message,
            error_code='CONFIG_VALIDATION_ERROR',
            details={'invalid_keys': invalid_keys}
        )

class CountReferenceError(ConfigurationException):
    """Raised when `count` is neither an integer nor a known expression."""
    def __init__(self, message: str, value: Any):
        super().__init__(
            message=message,
            error_code='COUNT_REFERENCE_ERROR',
            details={'value': str(value)}
        )

class HysteresisConfigError(ConfigurationException):
    """Raised when the hysteresis band is malformed."""
    def __init__(self, message: str, value: Any):
        super().__init__(
            message=message,
            error_code='HYSTERESIS_CONFIG_ERROR',
            details={'value': str(value)}
        )

class NegativeCountError(ConfigurationException):
    """Raised when the resolved target count is below zero."""
    def __init__(self, message: str, target_count: int):
        super().__init__(
            message=message,
            error_code='NEGATIVE_COUNT_ERROR',
            details={'target_count': target_count}
        )

# Schedule Exceptions
class ScheduleException(CronScaleException):
    """Base class for schedule-related exceptions."""
    pass

class ScheduleParseError(ScheduleException):
    """Raised when a calendar window cannot be parsed."""
    def __init__(self, message: str, window: str, field_name: Optional[str] = None):
        super().__init__(
            message=message,
            error_code='SCHEDULE_PARSE_ERROR',
            details={
                'window': window,
                'field': field_name
            }
        )

class RuleReferenceError(ScheduleException):
    """Raised when a period's reference token cannot be resolved."""
    def __init__(self, message: str, key: str, value: str):
        super().__init__(
            message=message,
            error_code='RULE_REFERENCE_ERROR',
            details={
                'key': key,
                'value': value
            }
        )

# Expression Exceptions
class ExpressionError(CronScaleException):
    """Raised when a formula cannot be parsed or evaluated."""
    def __init__(self, message: str, formula: str, position: Optional[int] = None):
        super().__init__(
            message=message,
            error_code='EXPRESSION_ERROR',
            details={
                'formula': formula,
                'position': position
            }
        )

def handle_exception(exception: CronScaleException) -> dict:
    """
    Global exception handler that processes all CronScale exceptions.

    Args:
        exception: The caught exception

    Returns:
        dict: Formatted error response
    """
    error_info = exception.to_dict()

    return {
        'status': 'error',
        'error': error_info
    }
