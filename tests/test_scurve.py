from decimal import Decimal

from lastro.analysis.scurve import build_s_curve, month_label
from lastro.domain.stages import MonthlyValueRow, StageForPV


def _row(stage_id, month_key, value, value_type="planned"):
    return MonthlyValueRow(stage_id=stage_id, month_key=month_key, value=value, value_type=value_type)


STAGES = [
    StageForPV(id="p"),
    StageForPV(id="a", parent_id="p"),
    StageForPV(id="b", parent_id="p"),
]


def test_no_stages_means_no_leaves():
    assert build_s_curve([], [_row("a", "2025-01", "10")]).status == "no-leaves"


def test_only_filtered_rows_means_no_values():
    values = [
        _row("p", "2025-01", "10"),          # not a leaf
        _row("ghost", "2025-01", "10"),      # orphan
        _row("a", "2025-13", "10"),          # invalid month
        _row("a", "2025-01", "10", "forecast"),
    ]

    result = build_s_curve(STAGES, values)

    assert result.status == "no-values"
    assert result.data == []


def test_cumulative_curve_over_continuous_months():
    values = [
        _row("a", "2025-01", "100.00"),
        _row("b", "2025-01", "50.50"),
        _row("p", "2025-02", "999"),
        _row("a", "2025-03", "120.00", "actual"),
        _row("ghost", "2025-04", "1"),
    ]

    result = build_s_curve(STAGES, values)

    assert result.status == "ok"
    assert [p.month_key for p in result.data] == ["2025-01", "2025-02", "2025-03"]
    assert [p.label for p in result.data] == ["Jan/2025", "Fev/2025", "Mar/2025"]
    assert [p.pv_monthly for p in result.data] == [Decimal("150.50"), Decimal("0"), Decimal("0")]
    assert [p.ac_monthly for p in result.data] == [Decimal("0"), Decimal("0"), Decimal("120.00")]
    assert [p.pv_cumulative for p in result.data] == [Decimal("150.50")] * 3
    assert [p.ac_cumulative for p in result.data] == [Decimal("0"), Decimal("0"), Decimal("120.00")]
    assert [p.deviation_cumulative for p in result.data] == [
        Decimal("-150.50"),
        Decimal("-150.50"),
        Decimal("-30.50"),
    ]


def test_month_label_across_years():
    assert month_label("2024-12") == "Dez/2024"
    assert month_label("2025-08") == "Ago/2025"
