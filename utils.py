"""
utils.py
Validation, dates, due-date status, filtering, exports, sample data.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Iterable
import pandas as pd

import config
from models import (
    PLAN_MONTHS,
    DEFAULT_PLAN,
    OVERDUE,
    DUE_SOON,
    CURRENT,
    UNSET,
    Member,
)


def today_iso() -> str:
    return date.today().isoformat()


def parse_iso(d: str) -> date:
    return date.fromisoformat(d)


def add_months(start: date, months: int) -> date:
    """
    Add months while keeping day in valid range (e.g., Jan 31 + 1 month => Feb 28/29).
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    # last day of target month
    if m == 12:
        next_month = date(y + 1, 1, 1)
    else:
        next_month = date(y, m + 1, 1)
    last_day = next_month - timedelta(days=1)
    day = min(start.day, last_day.day)
    return date(y, m, day)


def advance(start: date, plan_type: str) -> date:
    return add_months(start, PLAN_MONTHS.get(plan_type, PLAN_MONTHS[DEFAULT_PLAN]))


def calc_due_date(last_payment_iso: str | None, plan_type: str) -> str | None:
    if not last_payment_iso:
        return None
    return advance(parse_iso(last_payment_iso), plan_type).isoformat()


def days_until(due_date_iso: str | None, now: date | datetime) -> int | None:
    """
    Whole days from `now` to the due date, rounded up.
    Negative means overdue; None when no due date is set.
    """
    if not due_date_iso:
        return None
    due = parse_iso(due_date_iso)
    if isinstance(now, datetime):
        due_at = datetime(due.year, due.month, due.day, tzinfo=now.tzinfo)
        return math.ceil((due_at - now).total_seconds() / 86400)
    return (due - now).days


def status_bucket(days: int | None, window: int | None = None) -> str:
    if window is None:
        window = config.DUE_SOON_DAYS
    if days is None:
        return UNSET
    if days < 0:
        return OVERDUE
    if days <= window:
        return DUE_SOON
    return CURRENT


def status_label(days: int | None, window: int | None = None) -> str:
    bucket = status_bucket(days, window)
    if bucket == UNSET:
        return "No due date"
    if bucket == OVERDUE:
        return f"Overdue by {abs(days)} days"
    if bucket == DUE_SOON:
        return f"Due in {days} days"
    return f"{days} days left"


def matches_search(member: Member, search_term: str) -> bool:
    # name is matched case-insensitively, contact as a raw substring
    return search_term.lower() in member.name.lower() or search_term in member.contact


def matches_status(member: Member, status: str, now: date | datetime, window: int | None = None) -> bool:
    if status == "paid":
        return member.fee_paid
    if status == "unpaid":
        return not member.fee_paid
    if status in (OVERDUE, DUE_SOON):
        return status_bucket(days_until(member.due_date, now), window) == status
    return True


def filter_members(
    members: Iterable[Member],
    search_term: str,
    status: str,
    now: date | datetime,
    window: int | None = None,
) -> list[Member]:
    return [
        m for m in members
        if matches_search(m, search_term) and matches_status(m, status, now, window)
    ]


def parse_age(value) -> int | None:
    if value is None or str(value).strip() == "":
        return None
    try:
        age = int(str(value).strip())
    except ValueError:
        return 0
    return max(age, 0)


def parse_fee(value) -> float:
    try:
        fee = float(str(value).strip())
    except ValueError:
        return 0.0
    if math.isnan(fee) or fee < 0:
        return 0.0
    return fee


def validate_member_inputs(name: str, contact: str, fee_amount, dates: Iterable = ()) -> list[str]:
    errors: list[str] = []
    if not str(name or "").strip():
        errors.append("Name is required.")
    if not str(contact or "").strip():
        errors.append("Contact is required.")
    if not str(fee_amount if fee_amount is not None else "").strip():
        errors.append("Fee amount is required.")
    try:
        # blank dates are optional
        for d in dates:
            if d:
                parse_iso(str(d))
    except ValueError:
        errors.append("Dates must be valid ISO dates (YYYY-MM-DD).")
    return errors


def format_reminder(member: Member, now: date | datetime) -> str:
    days = days_until(member.due_date, now)
    if days is None:
        raise ValueError(f"Member {member.id} has no due date set.")
    if days < 0:
        message = f"Payment OVERDUE by {abs(days)} days!"
    else:
        message = f"Payment due in {days} days"
    return (
        f"Reminder sent to {member.name}\n{member.contact}\n\n{message}\n"
        f"Amount: {config.CURRENCY_SYMBOL}{member.fee_amount:.2f}\n"
        f"Due Date: {member.due_date}"
    )


def members_to_dataframe(members: Iterable[Member], now: date | datetime) -> pd.DataFrame:
    rows = []
    for m in members:
        row = m.as_row()
        row["due_status"] = status_label(days_until(m.due_date, now))
        rows.append(row)
    if not rows:
        return pd.DataFrame(columns=list(Member.__dataclass_fields__) + ["due_status"])
    return pd.DataFrame(rows)


def members_to_csv_bytes(members: Iterable[Member], now: date | datetime) -> bytes:
    df = members_to_dataframe(members, now)
    return df.to_csv(index=False).encode("utf-8")


def sample_members(today: date) -> list[dict]:
    """
    Three sample drafts: one due soon, one current, one overdue.
    """
    due_soon_paid = add_months(today + timedelta(days=5), -1)
    current_paid = today - timedelta(days=10)
    overdue_paid = add_months(today - timedelta(days=10), -1)

    return [
        {
            "name": "Ahmed Hassan",
            "age": "28",
            "contact": "01000000001",
            "email": "ahmed@example.com",
            "membership_type": "monthly",
            "fee_amount": "300",
            "fee_paid": True,
            "join_date": due_soon_paid.isoformat(),
            "last_payment_date": due_soon_paid.isoformat(),
        },
        {
            "name": "Mona Ali",
            "age": "",
            "contact": "01000000002",
            "membership_type": "quarterly",
            "fee_amount": "800",
            "fee_paid": True,
            "join_date": current_paid.isoformat(),
            "last_payment_date": current_paid.isoformat(),
        },
        {
            "name": "Omar Samy",
            "age": "35",
            "contact": "01000000003",
            "address": "12 Nile St.",
            "membership_type": "monthly",
            "fee_amount": "300",
            "fee_paid": False,
            "join_date": (today - timedelta(days=60)).isoformat(),
            "last_payment_date": overdue_paid.isoformat(),
        },
    ]
