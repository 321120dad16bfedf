from datetime import date
from decimal import Decimal

import pytest

from loan_engine.loans import create_loan


@pytest.fixture
def start():
    return date(2024, 1, 1)


@pytest.fixture
def home_loan(start):
    """100,000 at 8.5% over five years."""
    return create_loan(Decimal("100000"), Decimal("8.5"), 60, start, loan_id="home")


@pytest.fixture
def card_and_car(start):
    """A small expensive loan and a large cheaper one."""
    return [
        create_loan(Decimal("50000"), Decimal("18"), 36, start, loan_id="card"),
        create_loan(Decimal("100000"), Decimal("12"), 60, start, loan_id="car"),
    ]
