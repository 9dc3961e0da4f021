"""
store.py
MemberStore: the in-memory member collection, written back whole on every change.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Mapping

import config
import db
import utils
from models import PLAN_MONTHS, DEFAULT_PLAN, OVERDUE, Member

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class PersistenceError(Exception):
    def __init__(self, message: str, member: Member | None = None):
        super().__init__(message)
        # the member that was added in memory but not written
        self.member = member


class MemberStore:
    """
    Owns the member list for one running app.

    Reads the collection once in load(); every successful mutation serializes the
    whole list and overwrites the storage slot before returning. If that write
    fails the change stays in memory, `dirty` is set and PersistenceError is raised.
    """

    def __init__(self, db_file: Path | None = None, storage_key: str | None = None):
        self.db_file = db_file
        self.storage_key = storage_key or config.STORAGE_KEY
        self._members: list[Member] = []
        self.dirty = False

    @property
    def members(self) -> list[Member]:
        return list(self._members)

    def load(self) -> list[Member]:
        try:
            raw = db.read_value(self.storage_key, self.db_file)
            if raw is None:
                logger.info(f"No stored members under '{self.storage_key}', starting empty")
                records = []
            else:
                records = json.loads(raw)
                if not isinstance(records, list):
                    raise TypeError(f"expected a list of members, got {type(records).__name__}")
            self._members = self._parse_records(records)
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Could not read stored members, starting empty: {e}")
            self._members = []
        self.dirty = False
        logger.info(f"Loaded {len(self._members)} members")
        return self.members

    def _parse_records(self, records: list) -> list[Member]:
        members = []
        for position, record in enumerate(records):
            try:
                members.append(Member.from_record(record))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping unreadable member record at position {position}: {e}")
        return members

    def save(self) -> None:
        payload = json.dumps([m.to_record() for m in self._members], ensure_ascii=False)
        try:
            db.write_value(self.storage_key, payload, self.db_file)
        except (sqlite3.Error, OSError) as e:
            self.dirty = True
            logger.error(f"Failed to save {len(self._members)} members: {e}")
            raise PersistenceError("Failed to save data. Please try again.") from e
        self.dirty = False

    def get(self, member_id: int) -> Member | None:
        for m in self._members:
            if m.id == member_id:
                return m
        return None

    def _next_id(self, now_ms: int | None) -> int:
        new_id = now_ms if now_ms is not None else int(time.time() * 1000)
        taken = {m.id for m in self._members}
        while new_id in taken:
            new_id += 1
        return new_id

    def _build(self, member_id: int, fields: Mapping, join_default: str) -> Member:
        errors = utils.validate_member_inputs(
            fields.get("name"),
            fields.get("contact"),
            fields.get("fee_amount"),
            dates=(fields.get("join_date"), fields.get("last_payment_date")),
        )
        if errors:
            raise ValidationError(errors)

        plan = fields.get("membership_type") or DEFAULT_PLAN
        if plan not in PLAN_MONTHS:
            plan = DEFAULT_PLAN
        last_payment = fields.get("last_payment_date") or None

        return Member(
            id=member_id,
            name=str(fields["name"]).strip(),
            contact=str(fields["contact"]).strip(),
            fee_amount=utils.parse_fee(fields["fee_amount"]),
            membership_type=plan,
            age=utils.parse_age(fields.get("age")),
            email=str(fields.get("email") or "").strip(),
            address=str(fields.get("address") or "").strip(),
            fee_paid=bool(fields.get("fee_paid")),
            join_date=fields.get("join_date") or join_default,
            last_payment_date=last_payment,
            due_date=utils.calc_due_date(last_payment, plan),
        )

    def create(self, fields: Mapping, today: date | None = None, now_ms: int | None = None) -> Member:
        today = today or date.today()
        member = self._build(self._next_id(now_ms), fields, today.isoformat())
        self._members.append(member)
        logger.info(f"Created member {member.id} ({member.name})")
        try:
            self.save()
        except PersistenceError as e:
            e.member = member
            raise
        return member

    def update(self, member_id: int, fields: Mapping) -> Member | None:
        existing = self.get(member_id)
        if existing is None:
            logger.info(f"Update skipped, no member with id {member_id}")
            return None
        member = self._build(member_id, fields, existing.join_date)
        self._members = [member if m.id == member_id else m for m in self._members]
        logger.info(f"Updated member {member_id}")
        self.save()
        return member

    def delete(self, member_id: int, confirm: Callable[[], bool]) -> bool:
        if self.get(member_id) is None:
            return False
        if not confirm():
            logger.info(f"Delete of member {member_id} not confirmed")
            return False
        self._members = [m for m in self._members if m.id != member_id]
        logger.info(f"Deleted member {member_id}")
        self.save()
        return True

    def mark_paid(self, member_id: int, today: date | None = None) -> Member | None:
        """
        Record a payment made today. The cycle restarts from today, not from the old due date.
        """
        existing = self.get(member_id)
        if existing is None:
            return None
        today = today or date.today()
        member = replace(
            existing,
            fee_paid=True,
            last_payment_date=today.isoformat(),
            due_date=utils.advance(today, existing.membership_type).isoformat(),
        )
        self._members = [member if m.id == member_id else m for m in self._members]
        logger.info(f"Member {member_id} marked paid, next due {member.due_date}")
        self.save()
        return member

    def send_reminder(self, member_id: int, now: date | datetime | None = None) -> str:
        member = self.get(member_id)
        if member is None:
            raise KeyError(member_id)
        message = utils.format_reminder(member, now or datetime.now())
        # Nothing is dispatched; the text is only shown to the owner
        logger.info(f"Simulated reminder for member {member_id} to {member.contact}")
        return message

    def filter(self, search_term: str = "", status: str = "all", now: date | datetime | None = None) -> list[Member]:
        return utils.filter_members(self._members, search_term, status, now or datetime.now())

    def stats(self, now: date | datetime | None = None) -> dict:
        now = now or datetime.now()
        paid = sum(1 for m in self._members if m.fee_paid)
        overdue = sum(
            1 for m in self._members
            if utils.status_bucket(utils.days_until(m.due_date, now)) == OVERDUE
        )
        return {
            "total": len(self._members),
            "paid": paid,
            "unpaid": len(self._members) - paid,
            "overdue": overdue,
        }

    def insert_sample_data(self, today: date | None = None) -> list[Member]:
        """
        Add 3 sample members (adds new rows each time it runs).
        """
        today = today or date.today()
        added = []
        for fields in utils.sample_members(today):
            added.append(self.create(fields, today=today))
        return added
