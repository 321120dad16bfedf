"""Errors raised by the loan engine.

Every error is a local validation failure the caller can recover from. Each
one names the offending parameter, the value that was supplied and the
constraint it violated so a front end can present an actionable message.
"""

from __future__ import annotations

from typing import Any


class LoanEngineError(ValueError):
    """Base class for all engine validation failures."""

    def __init__(self, parameter: str, value: Any, constraint: str) -> None:
        self.parameter = parameter
        self.value = value
        self.constraint = constraint
        super().__init__(f"Invalid {parameter}={value!r}: {constraint}")


class InvalidLoanParameters(LoanEngineError):
    """Non-positive principal or tenure, negative rate, non-physical tenure."""


class InvalidScenario(LoanEngineError):
    """A what-if or strategy request that cannot be simulated."""


class InvalidIncome(LoanEngineError):
    """Non-positive income supplied to a ratio calculation."""
