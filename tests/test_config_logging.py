# tests/test_config_logging.py
import json
import logging
import sys

import pytest

from blockplan.adapters.config import AppConfig
from blockplan.adapters.logging_utils import JsonLogFormatter, get_logger


def test_rates_accept_percent_or_fraction():
    cfg = AppConfig(INTEREST_RATE="6.5%", VACANCY_RATE=2, MANAGEMENT_FEE_RATE=0.08)
    assert cfg.INTEREST_RATE == pytest.approx(0.065)
    assert cfg.VACANCY_RATE == pytest.approx(0.02)
    assert cfg.MANAGEMENT_FEE_RATE == pytest.approx(0.08)


def test_negative_rate_rejected():
    with pytest.raises(ValueError):
        AppConfig(EQUITY_RELEASE_FACTOR=-0.1)


def test_lvr_bounds_validated():
    assert AppConfig(MAX_LVR="90%").MAX_LVR == 90.0
    with pytest.raises(ValueError):
        AppConfig(MIN_LVR=120)


def test_settings_read_from_prefixed_env(monkeypatch):
    monkeypatch.setenv("BLOCKPLAN_EQUITY_RELEASE_FACTOR", "80")
    monkeypatch.setenv("BLOCKPLAN_GROWTH_YEAR5PLUS", "4.5")
    a = AppConfig().to_assumptions()
    assert a.equity_release_factor == pytest.approx(0.8)
    assert a.growth_curve.year5plus == 4.5


def test_to_assumptions_carries_expenses():
    a = AppConfig(COUNCIL_RATES=2500, STRATA_FEES=1200).to_assumptions()
    assert a.expenses.council_rates == 2500.0
    assert a.expenses.strata_fees == 1200.0


def test_json_log_formatter_merges_context():
    record = logging.LogRecord("blockplan.test", logging.INFO, __file__, 1, "cascade_run", None, None)
    record.context = {"n_purchases": 2}
    payload = json.loads(JsonLogFormatter().format(record))

    assert payload["service"] == "blockplan"
    assert payload["message"] == "cascade_run"
    assert payload["level"] == "INFO"
    assert payload["n_purchases"] == 2


def test_get_logger_installs_one_handler():
    first = get_logger("blockplan.test.handlers")
    second = get_logger("blockplan.test.handlers")
    assert first is second
    assert len(second.handlers) == 1
    assert not second.propagate


def test_json_log_formatter_includes_exception_and_odd_values():
    try:
        raise ValueError("Invalid state: 'Victoria'")
    except ValueError:
        record = logging.LogRecord(
            "blockplan.test", logging.WARNING, __file__, 1, "request_rejected", None, sys.exc_info()
        )
    record.context = {"year": 2025.5, "fields": {"state"}}
    payload = json.loads(JsonLogFormatter().format(record))

    assert "Invalid state" in payload["exc_info"]
    assert payload["fields"] == "{'state'}"
    assert payload["env"] == AppConfig().ENV


def test_get_logger_level_override():
    assert get_logger("blockplan.test.level", level="WARNING").level == logging.WARNING
