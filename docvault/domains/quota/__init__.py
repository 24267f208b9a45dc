from docvault.domains.quota.enforcer import QuotaEnforcer, QuotaEvaluation
from docvault.domains.quota.locks import OwnerLocks

__all__ = [
    "QuotaEnforcer",
    "QuotaEvaluation",
    "OwnerLocks"
]
