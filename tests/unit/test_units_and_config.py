"""Unit tests for size conversion and the plan table."""

import pytest

from docvault.core.config import PlanTable, Settings
from docvault.core.exceptions import ConfigurationError
from docvault.core.units import BYTES_IN_MB, bytes_to_mb, mb_to_bytes


def test_megabyte_is_binary() -> None:
    assert BYTES_IN_MB == 1048576
    assert mb_to_bytes(50) == 52428800


def test_bytes_to_mb_rounds_to_two_decimals() -> None:
    assert bytes_to_mb(1047576) == 1.0
    assert bytes_to_mb(524288) == 0.5
    assert bytes_to_mb(1047576, round_result=False) == 1047576 / 1048576


def test_bytes_to_mb_keeps_sign_for_overdraft() -> None:
    assert bytes_to_mb(-524288) == -0.5


def test_plan_table_limits_in_bytes() -> None:
    plans = PlanTable({"free": 50, "pro": 500}, "free")

    assert plans.limit_bytes("free") == 52428800
    assert plans.limit_bytes("pro") == 500 * 1048576
    assert set(plans) == {"free", "pro"}
    assert len(plans) == 2
    assert plans["pro"] == 500


def test_plan_table_unknown_plan_is_configuration_error() -> None:
    plans = PlanTable({"free": 50}, "free")

    with pytest.raises(ConfigurationError) as exc_info:
        plans.limit_bytes("gold")

    assert "gold" in exc_info.value.message


@pytest.mark.parametrize(
    "table",
    [
        {},
        {"free": 0},
        {"free": -5},
        {"free": True},
        {"free": "50"},
    ],
)
def test_plan_table_rejects_invalid_tables(table) -> None:
    with pytest.raises(ConfigurationError):
        PlanTable(table, "free")


def test_plan_table_requires_default_plan() -> None:
    with pytest.raises(ConfigurationError):
        PlanTable({"pro": 100}, "free")


def test_plan_table_is_read_only() -> None:
    source = {"free": 50}
    plans = PlanTable(source, "free")
    source["free"] = 1

    assert plans.limit_bytes("free") == 52428800
    with pytest.raises(TypeError):
        plans["free"] = 10


def test_settings_plans_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLANS", '{"free": 50, "team": 2048}')
    monkeypatch.setenv("DEFAULT_PLAN", "team")

    settings = Settings()
    plans = PlanTable.from_settings(settings)

    assert plans.default_plan == "team"
    assert plans.limit_bytes("team") == 2048 * 1048576
