from datetime import date, datetime, timedelta

import pytest

import utils
from models import Member


def make_member(**kw):
    base = dict(id=1, name="Asha Rao", contact="555-0101", fee_amount=500.0)
    base.update(kw)
    return Member(**base)


@pytest.mark.parametrize(
    "start, plan, expected",
    [
        (date(2024, 1, 15), "monthly", date(2024, 2, 15)),
        (date(2024, 1, 15), "quarterly", date(2024, 4, 15)),
        (date(2024, 1, 15), "yearly", date(2025, 1, 15)),
        (date(2024, 11, 30), "quarterly", date(2025, 2, 28)),
        (date(2024, 12, 5), "monthly", date(2025, 1, 5)),
    ],
)
def test_advance_by_plan(start, plan, expected):
    assert utils.advance(start, plan) == expected


def test_advance_clamps_to_month_end():
    assert utils.advance(date(2024, 1, 31), "monthly") == date(2024, 2, 29)
    assert utils.advance(date(2023, 1, 31), "monthly") == date(2023, 2, 28)
    assert utils.advance(date(2024, 2, 29), "yearly") == date(2025, 2, 28)


def test_advance_unknown_plan_is_one_month():
    assert utils.advance(date(2024, 3, 10), "weekly") == date(2024, 4, 10)


def test_calc_due_date():
    assert utils.calc_due_date("2024-01-15", "monthly") == "2024-02-15"
    assert utils.calc_due_date("", "monthly") is None
    assert utils.calc_due_date(None, "yearly") is None


def test_days_until_overdue_example():
    days = utils.days_until("2024-02-15", date(2024, 2, 20))
    assert days == -5
    assert utils.status_bucket(days) == "overdue"


def test_days_until_rounds_up_partial_days():
    assert utils.days_until("2024-02-15", datetime(2024, 2, 20, 10, 0)) == -5
    assert utils.days_until("2024-02-22", datetime(2024, 2, 20, 10, 0)) == 2
    assert utils.days_until("2024-02-20", datetime(2024, 2, 20, 0, 0)) == 0


def test_days_until_without_due_date():
    assert utils.days_until(None, date(2024, 2, 20)) is None
    assert utils.days_until("", date(2024, 2, 20)) is None


def test_days_until_decreases_day_by_day():
    start = date(2024, 2, 1)
    values = [utils.days_until("2024-02-15", start + timedelta(days=i)) for i in range(30)]
    assert values == [14 - i for i in range(30)]
    assert utils.days_until("2024-02-15", start) == utils.days_until("2024-02-15", start)


@pytest.mark.parametrize(
    "days, bucket",
    [(-1, "overdue"), (0, "due-soon"), (7, "due-soon"), (8, "current"), (None, "unset")],
)
def test_status_bucket_boundaries(days, bucket):
    assert utils.status_bucket(days, window=7) == bucket


def test_status_label():
    assert utils.status_label(-3, window=7) == "Overdue by 3 days"
    assert utils.status_label(2, window=7) == "Due in 2 days"
    assert utils.status_label(20, window=7) == "20 days left"
    assert utils.status_label(None) == "No due date"


class TestFilterMembers:
    now = date(2024, 2, 20)

    @pytest.fixture
    def members(self):
        return [
            make_member(id=1, name="Asha Rao", contact="555-0101", fee_paid=True, due_date="2024-03-20"),
            make_member(id=2, name="Bilal Khan", contact="bilal@Gym", fee_paid=False, due_date="2024-02-15"),
            make_member(id=3, name="Chitra Das", contact="555-0303", fee_paid=False, due_date="2024-02-25"),
            make_member(id=4, name="Dev Patel", contact="555-0404", fee_paid=False, due_date=None),
        ]

    def ids(self, members):
        return [m.id for m in members]

    def test_all_keeps_order(self, members):
        assert self.ids(utils.filter_members(members, "", "all", self.now)) == [1, 2, 3, 4]

    def test_name_search_is_case_insensitive(self, members):
        assert self.ids(utils.filter_members(members, "aSHA", "all", self.now)) == [1]

    def test_contact_search_is_case_sensitive(self, members):
        assert self.ids(utils.filter_members(members, "@Gym", "all", self.now)) == [2]
        assert self.ids(utils.filter_members(members, "@GYM", "all", self.now)) == []

    def test_contact_digits(self, members):
        assert self.ids(utils.filter_members(members, "0303", "all", self.now)) == [3]

    def test_paid_and_unpaid(self, members):
        assert self.ids(utils.filter_members(members, "", "paid", self.now)) == [1]
        assert self.ids(utils.filter_members(members, "", "unpaid", self.now)) == [2, 3, 4]

    def test_overdue_and_due_soon(self, members):
        assert self.ids(utils.filter_members(members, "", "overdue", self.now)) == [2]
        assert self.ids(utils.filter_members(members, "", "due-soon", self.now, window=7)) == [3]

    def test_search_and_status_combine(self, members):
        assert self.ids(utils.filter_members(members, "a", "unpaid", self.now)) == [2, 3, 4]
        assert self.ids(utils.filter_members(members, "khan", "paid", self.now)) == []

    def test_unknown_status_behaves_like_all(self, members):
        assert self.ids(utils.filter_members(members, "", "archived", self.now)) == [1, 2, 3, 4]

    def test_filter_is_idempotent(self, members):
        once = utils.filter_members(members, "a", "unpaid", self.now)
        assert utils.filter_members(once, "a", "unpaid", self.now) == once


def test_parse_age():
    assert utils.parse_age("") is None
    assert utils.parse_age(None) is None
    assert utils.parse_age("42") == 42
    assert utils.parse_age("forty") == 0
    assert utils.parse_age("-3") == 0


def test_parse_fee():
    assert utils.parse_fee("1500.50") == 1500.5
    assert utils.parse_fee("abc") == 0.0
    assert utils.parse_fee("-10") == 0.0
    assert utils.parse_fee("nan") == 0.0


def test_validate_member_inputs():
    assert utils.validate_member_inputs("Asha", "555", "100") == []
    errors = utils.validate_member_inputs("  ", "", None)
    assert errors == ["Name is required.", "Contact is required.", "Fee amount is required."]
    assert utils.validate_member_inputs("Asha", "555", "100", dates=("2024-01-15", "", None)) == []
    assert utils.validate_member_inputs("Asha", "555", "100", dates=("2024-02-30",)) == [
        "Dates must be valid ISO dates (YYYY-MM-DD)."
    ]


def test_format_reminder_overdue():
    m = make_member(fee_amount=500.0, due_date="2024-02-15")
    text = utils.format_reminder(m, date(2024, 2, 20))
    assert text.startswith("Reminder sent to Asha Rao\n555-0101\n\n")
    assert "Payment OVERDUE by 5 days!" in text
    assert "Amount: ₹500.00" in text
    assert "Due Date: 2024-02-15" in text


def test_format_reminder_due_in():
    m = make_member(due_date="2024-02-23")
    assert "Payment due in 3 days" in utils.format_reminder(m, date(2024, 2, 20))


def test_format_reminder_requires_due_date():
    with pytest.raises(ValueError):
        utils.format_reminder(make_member(), date(2024, 2, 20))


def test_members_to_csv_bytes():
    members = [make_member(due_date="2024-02-15"), make_member(id=2, name="Bilal")]
    csv = utils.members_to_csv_bytes(members, date(2024, 2, 20)).decode("utf-8")
    lines = csv.strip().splitlines()
    assert lines[0].startswith("id,name,contact,fee_amount")
    assert lines[0].endswith("due_status")
    assert "Overdue by 5 days" in lines[1]
    assert "No due date" in lines[2]


def test_members_to_dataframe_empty_has_columns():
    df = utils.members_to_dataframe([], date(2024, 2, 20))
    assert df.empty
    assert "due_status" in df.columns
    assert "membership_type" in df.columns


def test_sample_members_cover_each_bucket():
    today = date(2024, 6, 15)
    buckets = [
        utils.status_bucket(
            utils.days_until(utils.calc_due_date(f["last_payment_date"], f["membership_type"]), today),
            window=7,
        )
        for f in utils.sample_members(today)
    ]
    assert buckets == ["due-soon", "current", "overdue"]
