import sqlite3
from datetime import date

import pytest

import db
from forms import MemberDraft
from store import PersistenceError, ValidationError


def fill(draft, **values):
    for name, value in values.items():
        draft.set(name, value)


def test_due_date_follows_last_payment_and_plan():
    draft = MemberDraft()
    draft.set("last_payment_date", "2024-01-31")
    assert draft.due_date == "2024-02-29"
    draft.set("membership_type", "quarterly")
    assert draft.due_date == "2024-04-30"
    draft.set("last_payment_date", "")
    assert draft.due_date == ""


def test_due_date_is_not_editable():
    with pytest.raises(AttributeError):
        MemberDraft().set("due_date", "2030-01-01")
    with pytest.raises(AttributeError):
        MemberDraft().set("nickname", "x")


def test_submit_creates_and_resets(store, today):
    draft = MemberDraft()
    fill(draft, name="Neha", contact="555-1111", fee_amount="700", last_payment_date="2024-02-01")
    member = draft.submit(store, today=today)
    assert member.due_date == "2024-03-01"
    assert store.members == [member]
    assert draft.name == ""
    assert draft.join_date == today.isoformat()
    assert draft.editing_id is None


def test_submit_invalid_keeps_draft(store, today):
    draft = MemberDraft()
    fill(draft, name="", contact="555", fee_amount="100")
    with pytest.raises(ValidationError):
        draft.submit(store, today=today)
    assert draft.contact == "555"
    assert store.members == []


def test_edit_round_trip_updates_in_place(store, today):
    draft = MemberDraft()
    fill(draft, name="Neha", age="29", contact="555-1111", fee_amount="700")
    original = draft.submit(store, today=today)

    draft = MemberDraft.from_member(original)
    assert draft.editing_id == original.id
    assert draft.age == "29"
    assert draft.fee_amount == "700"
    draft.set("membership_type", "yearly")
    draft.set("last_payment_date", "2024-02-10")
    updated = draft.submit(store, today=today)

    assert updated.id == original.id
    assert updated.due_date == "2025-02-10"
    assert store.members == [updated]


def test_reset_restores_defaults():
    draft = MemberDraft(name="X", membership_type="yearly", editing_id=3)
    draft.reset(date(2024, 5, 1))
    assert draft == MemberDraft(join_date="2024-05-01")


def test_retry_after_failed_write_does_not_duplicate(store, today, monkeypatch):
    real_write = db.write_value

    def broken_write(*args, **kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    draft = MemberDraft()
    fill(draft, name="Neha", contact="555-1111", fee_amount="700")
    monkeypatch.setattr(db, "write_value", broken_write)
    with pytest.raises(PersistenceError):
        draft.submit(store, today=today)
    [kept] = store.members
    assert draft.editing_id == kept.id
    assert draft.name == "Neha"

    monkeypatch.setattr(db, "write_value", real_write)
    saved = draft.submit(store, today=today)
    assert saved.id == kept.id
    assert [m.name for m in store.members] == ["Neha"]
    assert store.dirty is False
