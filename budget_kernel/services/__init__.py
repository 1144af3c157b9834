"""Kernel services -- the only writers in the system."""

from budget_kernel.services.registry_service import RegistrationResult, RegistryService
from budget_kernel.services.settlement_service import (
    SettlementResult,
    SettlementService,
    SettlementStatus,
)

__all__ = [
    "RegistrationResult",
    "RegistryService",
    "SettlementResult",
    "SettlementService",
    "SettlementStatus",
]
