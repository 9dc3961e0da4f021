"""
forms.py
The add/edit member form draft.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields as dc_fields
from datetime import date

import utils
from models import DEFAULT_PLAN, Member
from store import MemberStore, PersistenceError


@dataclass
class MemberDraft:
    name: str = ""
    age: str = ""
    contact: str = ""
    email: str = ""
    address: str = ""
    membership_type: str = DEFAULT_PLAN
    fee_amount: str = ""
    fee_paid: bool = False
    join_date: str = field(default_factory=utils.today_iso)
    last_payment_date: str = ""
    due_date: str = ""
    editing_id: int | None = None

    @classmethod
    def from_member(cls, member: Member) -> "MemberDraft":
        return cls(
            name=member.name,
            age="" if member.age is None else str(member.age),
            contact=member.contact,
            email=member.email,
            address=member.address,
            membership_type=member.membership_type,
            fee_amount=f"{member.fee_amount:g}",
            fee_paid=member.fee_paid,
            join_date=member.join_date,
            last_payment_date=member.last_payment_date or "",
            due_date=member.due_date or "",
            editing_id=member.id,
        )

    def set(self, name: str, value) -> None:
        if name in ("due_date", "editing_id") or name not in self.__dataclass_fields__:
            raise AttributeError(f"{name!r} is not an editable form field")
        setattr(self, name, value)
        if name in ("last_payment_date", "membership_type"):
            self.due_date = utils.calc_due_date(self.last_payment_date, self.membership_type) or ""

    def values(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in dc_fields(self)
            if f.name not in ("due_date", "editing_id")
        }

    def reset(self, today: date | None = None) -> None:
        blank = MemberDraft(join_date=(today or date.today()).isoformat())
        for f in dc_fields(self):
            setattr(self, f.name, getattr(blank, f.name))

    def submit(self, store: MemberStore, today: date | None = None) -> Member:
        """
        Create or update depending on whether a member is being edited.
        ValidationError leaves the draft as it was; on success the draft is cleared.
        If a new member is kept in memory but not written, the draft switches to
        editing it so the next submit retries as an update.
        """
        if self.editing_id is None:
            try:
                member = store.create(self.values(), today=today)
            except PersistenceError as e:
                if e.member is not None:
                    self.editing_id = e.member.id
                raise
        else:
            member = store.update(self.editing_id, self.values())
        self.reset(today)
        return member
