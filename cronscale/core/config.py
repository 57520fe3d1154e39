# config.py
from typing import Any, Dict, List, Mapping, Optional
from pydantic import BaseModel, Field, validator
import yaml

from .exceptions import ConfigurationLoadError, ConfigurationValidationError

# Keys read from a strategy's configuration map.
CONFIG_KEY_SEPARATOR = "separator"
CONFIG_KEY_COUNT = "count"
CONFIG_KEY_HYSTERESIS = "hysteresis"
CONFIG_KEY_PERIOD_PREFIX = "period_"
CONFIG_KEY_EXPRESSION_PREFIX = "expression_"

DEFAULT_SEPARATOR = "->"

class Config:
    def __init__(self, config_path: str):
        self.config_path = config_path
        self.config = self._load_config(config_path)

    def _load_config(self, path: str) -> Dict:
        try:
            with open(path, 'r') as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationLoadError(
                f"Failed to load configuration from {path}: {str(e)}",
                config_path=path
            )

class NamedEntry(BaseModel):
    """A `period_<name>` or `expression_<name>` configuration entry."""
    name: str
    value: str

class StrategyConfig(BaseModel):
    """
    Typed view of a cron strategy configuration map.

    Periods and expressions are kept as lists ordered by name so that every
    evaluation walks them in the same order.
    """
    count: Optional[str] = None
    hysteresis: Optional[str] = None
    periods: List[NamedEntry] = Field(default_factory=list)
    expressions: List[NamedEntry] = Field(default_factory=list)

    @validator('periods', 'expressions')
    def sort_by_name(cls, v):
        return sorted(v, key=lambda entry: entry.name)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "StrategyConfig":
        """
        Build a StrategyConfig from a flat string map in a single pass.

        Args:
            raw: Configuration map as handed over by the host

        Returns:
            StrategyConfig instance
        """
        invalid_keys = sorted(k for k, v in raw.items() if not isinstance(v, str))
        if invalid_keys:
            raise ConfigurationValidationError(
                "Configuration values must be strings",
                invalid_keys=invalid_keys
            )

        count = None
        hysteresis = None
        periods = []
        expressions = []

        for key, value in raw.items():
            if key == CONFIG_KEY_COUNT:
                count = value
            elif key == CONFIG_KEY_HYSTERESIS:
                hysteresis = value
            elif key.startswith(CONFIG_KEY_PERIOD_PREFIX):
                periods.append(NamedEntry(name=key[len(CONFIG_KEY_PERIOD_PREFIX):], value=value))
            elif key.startswith(CONFIG_KEY_EXPRESSION_PREFIX) and len(key) > len(CONFIG_KEY_EXPRESSION_PREFIX):
                expressions.append(NamedEntry(name=key[len(CONFIG_KEY_EXPRESSION_PREFIX):], value=value))

        return cls(
            count=count,
            hysteresis=hysteresis,
            periods=periods,
            expressions=expressions
        )

    @classmethod
    def from_yaml(cls, path: str) -> "StrategyConfig":
        """
        Load a strategy configuration from a YAML file.

        The map is read from `strategy.config` when present, otherwise from the
        top level of the document. Numeric scalars are converted to strings.
        """
        document = Config(path).config
        if not isinstance(document, dict):
            raise ConfigurationLoadError(
                f"Expected a mapping in {path}",
                config_path=path
            )

        raw = document
        strategy = document.get('strategy')
        if isinstance(strategy, dict) and isinstance(strategy.get('config'), dict):
            raw = strategy['config']

        return cls.from_mapping({
            str(k): _scalar_to_str(v) for k, v in raw.items()
        })

    def period_key(self, entry: NamedEntry) -> str:
        """Original configuration key of a period entry, for diagnostics."""
        return f"{CONFIG_KEY_PERIOD_PREFIX}{entry.name}"

def _scalar_to_str(value: Any) -> Any:
    # bool is an int subclass but `true` is not a count
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value

def read_separator(config: Optional[Mapping[str, str]]) -> str:
    """Separator configured for a strategy, or the default `->`."""
    if not config:
        return DEFAULT_SEPARATOR
    return config.get(CONFIG_KEY_SEPARATOR, DEFAULT_SEPARATOR)
