"""
Tests for the kernel exception hierarchy.

Verifies:
- Every exception declares its own machine-readable code
- Families are catchable through their base classes
- Structured attributes carry the failure context
"""

import inspect

import pytest

from logistics_kernel import exceptions as exc_module
from logistics_kernel.exceptions import (
    AlreadyConvertedError,
    ConcurrencyError,
    ConversionPreconditionError,
    CostsUnconfirmedError,
    InvalidTransitionError,
    JustificationRequiredError,
    LifecycleError,
    LineItemError,
    LogisticsKernelError,
    OptimisticLockError,
    PJONotApprovedError,
    StaleStatusError,
    SubtotalMismatchError,
)

ALL_ERRORS = [
    cls for _, cls in inspect.getmembers(exc_module, inspect.isclass)
    if issubclass(cls, LogisticsKernelError)
]


class TestCodes:

    @pytest.mark.parametrize("cls", ALL_ERRORS, ids=lambda c: c.__name__)
    def test_code_declared_on_class(self, cls):
        assert "code" in vars(cls)
        assert cls.code.isupper()

    def test_codes_unique(self):
        codes = [cls.code for cls in ALL_ERRORS]
        assert len(codes) == len(set(codes))


class TestHierarchy:

    @pytest.mark.parametrize("error, base", [
        (SubtotalMismatchError("i", "1", "2", "0.01"), LineItemError),
        (InvalidTransitionError("proforma_job_order", "approved", "submit", ()), LifecycleError),
        (JustificationRequiredError("c", "10", "12"), LifecycleError),
        (PJONotApprovedError("p", "draft"), ConversionPreconditionError),
        (AlreadyConvertedError("p", "j"), ConversionPreconditionError),
        (StaleStatusError("p", "draft", "approved"), ConcurrencyError),
        (OptimisticLockError("ProformaJobOrder", "p", "draft"), ConcurrencyError),
    ])
    def test_family(self, error, base):
        assert isinstance(error, base)
        assert isinstance(error, LogisticsKernelError)


class TestAttributes:

    def test_invalid_transition(self):
        error = InvalidTransitionError("proforma_job_order", "approved", "reject", ["x"])
        assert error.from_state == "approved"
        assert error.action == "reject"
        assert error.allowed == ("x",)

    def test_costs_unconfirmed_singular(self):
        error = CostsUnconfirmedError("p", 1, 3)
        assert str(error) == "1 cost item still unconfirmed"
        assert error.precondition == "all_costs_confirmed"
