"""
models.py
Lightweight domain helpers (plans, status buckets, the Member dataclass).
"""

from __future__ import annotations
from dataclasses import dataclass, asdict

# Plan durations in months (used for due_date auto-calculation)
PLAN_MONTHS = {
    "monthly": 1,
    "quarterly": 3,
    "yearly": 12,
}

DEFAULT_PLAN = "monthly"

# Filter choices offered by the members list
STATUS_FILTERS = ["all", "paid", "unpaid", "overdue", "due-soon"]

# Due-date buckets
OVERDUE = "overdue"
DUE_SOON = "due-soon"
CURRENT = "current"
UNSET = "unset"


@dataclass(frozen=True)
class Member:
    id: int
    name: str
    contact: str
    fee_amount: float
    membership_type: str = DEFAULT_PLAN
    age: int | None = None
    email: str = ""
    address: str = ""
    fee_paid: bool = False
    join_date: str = ""
    last_payment_date: str | None = None
    due_date: str | None = None

    def to_record(self) -> dict:
        """
        Serialized shape stored in the key-value slot.
        Absent dates are written as "" so older blobs and new ones read the same.
        """
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "contact": self.contact,
            "email": self.email,
            "address": self.address,
            "membershipType": self.membership_type,
            "feeAmount": self.fee_amount,
            "feePaid": self.fee_paid,
            "joinDate": self.join_date,
            "lastPaymentDate": self.last_payment_date or "",
            "dueDate": self.due_date or "",
        }

    @classmethod
    def from_record(cls, record: dict) -> "Member":
        plan = record.get("membershipType") or DEFAULT_PLAN
        if plan not in PLAN_MONTHS:
            plan = DEFAULT_PLAN
        age = record.get("age")
        return cls(
            id=int(record["id"]),
            name=str(record.get("name") or ""),
            contact=str(record.get("contact") or ""),
            fee_amount=float(record.get("feeAmount") or 0),
            membership_type=plan,
            age=int(age) if age not in (None, "") else None,
            email=str(record.get("email") or ""),
            address=str(record.get("address") or ""),
            fee_paid=bool(record.get("feePaid")),
            join_date=str(record.get("joinDate") or ""),
            last_payment_date=record.get("lastPaymentDate") or None,
            due_date=record.get("dueDate") or None,
        )

    def as_row(self) -> dict:
        return asdict(self)
