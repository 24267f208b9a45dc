"""Unit tests for quota decisions."""

import pytest

from docvault.core.config import PlanTable
from docvault.core.exceptions import ConfigurationError, QuotaExceededError
from docvault.domains.quota.enforcer import QuotaEnforcer

LIMIT = 52428800


@pytest.fixture
def enforcer() -> QuotaEnforcer:
    return QuotaEnforcer(PlanTable({"free": 50}, "free"))


def test_create_exactly_at_limit_is_allowed(enforcer: QuotaEnforcer) -> None:
    evaluation = enforcer.assert_create("free", 0, LIMIT)

    assert evaluation.allowed
    assert evaluation.remaining_bytes == 0


def test_create_one_byte_over_limit_is_rejected(enforcer: QuotaEnforcer) -> None:
    with pytest.raises(QuotaExceededError) as exc_info:
        enforcer.assert_create("free", 0, LIMIT + 1)

    assert exc_info.value.detail == {"remainingBytes": -1}


def test_create_counts_existing_usage(enforcer: QuotaEnforcer) -> None:
    assert enforcer.evaluate_create("free", LIMIT - 100, 100).allowed
    assert not enforcer.evaluate_create("free", LIMIT - 100, 101).allowed


def test_update_credits_old_size(enforcer: QuotaEnforcer) -> None:
    # Владелец заполнил план целиком одним документом и заменяет его таким же
    evaluation = enforcer.assert_update("free", LIMIT, LIMIT, LIMIT)

    assert evaluation.credit_bytes == LIMIT
    assert evaluation.remaining_bytes == 0


def test_update_growth_beyond_limit_is_rejected(enforcer: QuotaEnforcer) -> None:
    with pytest.raises(QuotaExceededError):
        enforcer.assert_update("free", LIMIT, 1000, 1001)


def test_unknown_plan_is_configuration_error(enforcer: QuotaEnforcer) -> None:
    with pytest.raises(ConfigurationError):
        enforcer.evaluate_create("enterprise", 0, 1)


def test_remaining_bytes_can_be_negative(enforcer: QuotaEnforcer) -> None:
    assert enforcer.remaining_bytes("free", LIMIT + 10) == -10


def test_evaluation_to_dict(enforcer: QuotaEnforcer) -> None:
    payload = enforcer.evaluate_update("free", 10, 4, 6).to_dict()

    assert payload == {
        "plan": "free",
        "limitBytes": LIMIT,
        "usedBytes": 10,
        "creditBytes": 4,
        "chargeBytes": 6,
        "remainingBytes": LIMIT - 12,
    }
