from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from hypothesis import given, settings, strategies as st

from lastro.analysis.pv import (
    build_planned_values,
    distribute_pv,
    eligible_stages,
    leaf_stage_ids,
    needs_pv_sync,
    stage_window,
    value_to_cents,
)
from lastro.domain.stages import StageForPV


def test_distribute_three_months_example():
    rows = distribute_pv("s1", "2025-01-15", "2025-03-10", 100000)

    # 17 + 28 + 10 = 55 days
    assert [r.month_key for r in rows] == ["2025-01", "2025-02", "2025-03"]
    assert [r.value for r in rows] == [Decimal("309.09"), Decimal("509.09"), Decimal("181.82")]
    assert sum(r.value for r in rows) == Decimal("1000.00")
    assert all(r.stage_id == "s1" and r.value_type == "planned" for r in rows)


def test_single_day_gets_full_value():
    rows = distribute_pv("s1", date(2025, 5, 31), date(2025, 5, 31), 12345)

    assert len(rows) == 1
    assert rows[0].month_key == "2025-05"
    assert rows[0].value == Decimal("123.45")


def test_end_before_start_is_empty():
    assert distribute_pv("s1", "2025-03-10", "2025-03-01", 1000) == []


def test_year_boundary_and_leap_february():
    rows = distribute_pv("s1", "2023-12-31", "2024-02-29", 6100)

    assert [r.month_key for r in rows] == ["2023-12", "2024-01", "2024-02"]
    # 1 + 31 + 29 = 61 days, 100 cents a day
    assert [r.value for r in rows] == [Decimal("1.00"), Decimal("31.00"), Decimal("29.00")]


def test_zero_rows_are_dropped():
    # 1 cent over two months: the first month rounds to 0 and is omitted
    rows = distribute_pv("s1", "2025-01-31", "2025-02-03", 1)

    assert [(r.month_key, r.value) for r in rows] == [("2025-02", Decimal("0.01"))]


def test_negative_remainder_is_pulled_back():
    # 2 cents over 31+28+31+1 days: Jan, Feb and Mar each round up to 1 cent,
    # leaving -1 for April; March gives its cent back
    rows = distribute_pv("s1", "2025-01-01", "2025-04-01", 2)

    assert [(r.month_key, r.value) for r in rows] == [
        ("2025-01", Decimal("0.01")),
        ("2025-02", Decimal("0.01")),
    ]


@settings(max_examples=300, deadline=None)
@given(
    start=st.dates(min_value=date(2000, 1, 1), max_value=date(2040, 12, 31)),
    length=st.integers(min_value=1, max_value=900),
    total_cents=st.integers(min_value=1, max_value=10**10),
)
def test_distribution_sums_exactly(start, length, total_cents):
    end = start + timedelta(days=length - 1)

    rows = distribute_pv("s", start, end, total_cents)

    assert sum(r.value for r in rows) == Decimal(total_cents).scaleb(-2)
    assert all(r.value > 0 for r in rows)
    keys = [r.month_key for r in rows]
    assert keys == sorted(set(keys))


def _stage(id, parent=None, start="2025-01-01", end="2025-02-28", value="1000", **kw):
    return StageForPV(id=id, parent_id=parent, start_date=start, end_date=end, total_value=value, **kw)


def test_leaf_stage_ids():
    stages = [_stage("root"), _stage("a", "root"), _stage("b", "root"), _stage("a1", "a")]

    assert leaf_stage_ids(stages) == {"b", "a1"}


def test_taxas_stage_is_single_day():
    stage = _stage("t", start="2025-04-10", end="2025-09-30", stage_type="taxas")

    assert stage_window(stage) == (date(2025, 4, 10), date(2025, 4, 10))
    assert stage_window(_stage("t", start=None, stage_type="taxas")) is None
    assert stage_window(_stage("x", end=None)) is None


def test_only_eligible_leaves_are_distributed():
    stages = [
        _stage("root", value="99999"),
        _stage("a", "root", value="1000"),
        _stage("zero", "root", value="0"),
        _stage("undated", "root", end=None),
        _stage("fee", "root", start="2025-03-05", end=None, value="250.50", stage_type="taxas"),
    ]

    assert [s.id for s in eligible_stages(stages)] == ["a", "fee"]

    rows = build_planned_values(stages)
    assert {r.stage_id for r in rows} == {"a", "fee"}
    assert sum(r.value for r in rows if r.stage_id == "a") == Decimal("1000.00")
    assert [(r.month_key, r.value) for r in rows if r.stage_id == "fee"] == [("2025-03", Decimal("250.50"))]


def test_value_to_cents_rounds_half_up():
    assert value_to_cents(Decimal("10.005")) == 1001
    assert value_to_cents(0.1) == 10
    assert value_to_cents(None) == 0


def test_needs_pv_sync():
    t0 = datetime(2025, 1, 1, 12, tzinfo=timezone.utc)
    later = t0 + timedelta(minutes=5)
    stages = [_stage("a", updated_at=t0)]

    assert needs_pv_sync(stages, None) is True
    assert needs_pv_sync([_stage("a", value="0")], None) is False
    assert needs_pv_sync([], None) is False
    assert needs_pv_sync(stages, t0) is False
    assert needs_pv_sync([_stage("a", updated_at=later)], t0) is True
    assert needs_pv_sync([_stage("a")], t0) is False
