"""Tests for configuration parsing and loading."""

import pytest

from cronscale.core.config import StrategyConfig, read_separator
from cronscale.core.exceptions import (
    ConfigurationLoadError,
    ConfigurationValidationError,
    handle_exception,
)


def test_from_mapping_splits_keys():
    config = StrategyConfig.from_mapping({
        'count': '2',
        'hysteresis': '2,4',
        'period_b': "* * * * * * * -> 1",
        'period_a': "* * * * * * * -> 2",
        'expression_z': "1",
        'expression_y': "2",
        'expression_': "3",
        'separator': "->",
        'unrelated': "x",
    })
    assert config.count == '2'
    assert config.hysteresis == '2,4'
    assert [p.name for p in config.periods] == ['a', 'b']
    assert [e.name for e in config.expressions] == ['y', 'z']
    assert config.period_key(config.periods[0]) == 'period_a'


def test_from_mapping_rejects_non_strings():
    with pytest.raises(ConfigurationValidationError) as exc_info:
        StrategyConfig.from_mapping({'count': 2, 'period_x': None, 'hysteresis': '1,2'})
    assert exc_info.value.details['invalid_keys'] == ['count', 'period_x']


def test_from_yaml_top_level(tmp_path):
    path = tmp_path / "strategy.yaml"
    path.write_text(
        "count: 2\n"
        "hysteresis: 2,4,6\n"
        "period_day: '* * 9-17 * * mon-fri * -> 5'\n"
    )
    config = StrategyConfig.from_yaml(str(path))
    assert config.count == '2'
    assert config.hysteresis == '2,4,6'
    assert config.periods[0].value == '* * 9-17 * * mon-fri * -> 5'


def test_from_yaml_strategy_block(tmp_path):
    path = tmp_path / "check.yaml"
    path.write_text(
        "strategy:\n"
        "  name: cron\n"
        "  config:\n"
        "    count: 3\n"
        "    expression_busy: 'MetricsMax > 80 ? 10 : 4'\n"
    )
    config = StrategyConfig.from_yaml(str(path))
    assert config.count == '3'
    assert config.expressions[0].name == 'busy'


def test_from_yaml_missing_file(tmp_path):
    missing = str(tmp_path / "missing.yaml")
    with pytest.raises(ConfigurationLoadError) as exc_info:
        StrategyConfig.from_yaml(missing)
    assert handle_exception(exc_info.value)['error']['details']['config_path'] == missing


def test_from_yaml_rejects_non_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ConfigurationLoadError):
        StrategyConfig.from_yaml(str(path))


def test_read_separator():
    assert read_separator(None) == "->"
    assert read_separator({}) == "->"
    assert read_separator({'separator': '=>'}) == "=>"
