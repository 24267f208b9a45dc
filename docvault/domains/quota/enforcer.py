import logging
from dataclasses import dataclass
from typing import Dict, Union

from docvault.core.config import PlanTable
from docvault.core.exceptions import QuotaExceededError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaEvaluation:
    """Результат проверки квоты для одной записи"""

    plan: str
    limit_bytes: int
    used_bytes: int
    credit_bytes: int
    charge_bytes: int

    @property
    def remaining_bytes(self) -> int:
        return self.limit_bytes - self.used_bytes + self.credit_bytes - self.charge_bytes

    @property
    def allowed(self) -> bool:
        # Нулевой остаток допустим
        return self.remaining_bytes >= 0

    def to_dict(self) -> Dict[str, Union[str, int, bool]]:
        """Сериализация для логов и тела ошибки"""
        return {
            "plan": self.plan,
            "limitBytes": self.limit_bytes,
            "usedBytes": self.used_bytes,
            "creditBytes": self.credit_bytes,
            "chargeBytes": self.charge_bytes,
            "remainingBytes": self.remaining_bytes,
        }


class QuotaEnforcer:
    """Решение о допуске записи по таблице планов и текущему потреблению"""

    def __init__(self, plans: PlanTable):
        self.plans = plans

    def plan_limit_bytes(self, plan: str) -> int:
        """Объем плана в байтах; неизвестный план - ConfigurationError"""
        return self.plans.limit_bytes(plan)

    def remaining_bytes(self, plan: str, used_bytes: int) -> int:
        return self.plan_limit_bytes(plan) - used_bytes

    def evaluate_create(self, plan: str, used_bytes: int, size: int) -> QuotaEvaluation:
        """limit - used - size >= 0"""
        return QuotaEvaluation(
            plan=plan,
            limit_bytes=self.plan_limit_bytes(plan),
            used_bytes=used_bytes,
            credit_bytes=0,
            charge_bytes=size,
        )

    def evaluate_update(self, plan: str, used_bytes: int, old_size: int, new_size: int) -> QuotaEvaluation:
        """limit - used + old_size - new_size >= 0; старый блоб будет удален"""
        return QuotaEvaluation(
            plan=plan,
            limit_bytes=self.plan_limit_bytes(plan),
            used_bytes=used_bytes,
            credit_bytes=old_size,
            charge_bytes=new_size,
        )

    def assert_create(self, plan: str, used_bytes: int, size: int) -> QuotaEvaluation:
        return self._assert_allowed(self.evaluate_create(plan, used_bytes, size))

    def assert_update(self, plan: str, used_bytes: int, old_size: int, new_size: int) -> QuotaEvaluation:
        return self._assert_allowed(self.evaluate_update(plan, used_bytes, old_size, new_size))

    def _assert_allowed(self, evaluation: QuotaEvaluation) -> QuotaEvaluation:
        if not evaluation.allowed:
            logger.info(f"Quota check rejected write: {evaluation.to_dict()}")
            raise QuotaExceededError(detail={"remainingBytes": evaluation.remaining_bytes})
        return evaluation
