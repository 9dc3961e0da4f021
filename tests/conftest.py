from datetime import date

import pytest

from store import MemberStore


@pytest.fixture
def db_file(tmp_path):
    return tmp_path / "gym-test.db"


@pytest.fixture
def store(db_file):
    s = MemberStore(db_file=db_file)
    s.load()
    return s


@pytest.fixture
def today():
    return date(2024, 2, 20)


def member_fields(**overrides):
    fields = {
        "name": "Ravi Kumar",
        "age": "31",
        "contact": "9876543210",
        "email": "ravi@example.com",
        "address": "",
        "membership_type": "monthly",
        "fee_amount": "1500",
        "fee_paid": False,
        "join_date": "2024-01-01",
        "last_payment_date": "2024-01-15",
    }
    fields.update(overrides)
    return fields
