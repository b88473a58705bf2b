"""
Logistics kernel domain layer -- pure value objects, zero I/O.

Contents:
    values    -- Currency, Money
    currency  -- ISO 4217 registry (decimal places)
    clock     -- injectable Clock (SystemClock, DeterministicClock)
    workflow  -- Guard, Transition, Workflow and transition lookups
    dtos      -- ValidationError, ValidationResult
    validation -- Decimal coercion and minor-unit rounding helpers
"""

from logistics_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from logistics_kernel.domain.dtos import ValidationError, ValidationResult
from logistics_kernel.domain.values import Currency, Money
from logistics_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "Currency",
    "DeterministicClock",
    "Guard",
    "Money",
    "SystemClock",
    "Transition",
    "ValidationError",
    "ValidationResult",
    "Workflow",
]
