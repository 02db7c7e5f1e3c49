# entrypoints/cli/study.py
from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

import typer
from loguru import logger

from lastro.adapters.config import config, default_thresholds_from_config, money_context_from_config
from lastro.analysis.pv import distribute_pv, value_to_cents
from lastro.analysis.recompute import recompute_study
from lastro.analysis.scurve import build_s_curve
from lastro.domain.money import format_brl, format_percent
from lastro.domain.stages import MonthlyValueRow, StageForPV
from lastro.domain.study import UserThresholds
from lastro.services.validation import validate_line_item, validate_study_inputs

app = typer.Typer(help="Lastro study tools (recompute, planned value distribution, S-curve).")


def _read_json(path: Path) -> dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise typer.BadParameter(f"cannot read {path}: {e}") from e


def _fail(msg: str) -> None:
    typer.echo(msg, err=True)
    raise typer.Exit(code=1)


@app.command("recompute")
def recompute_cmd(
    payload: Path = typer.Argument(..., help="JSON file with inputs, line_items, thresholds and totals"),
    summary: bool = typer.Option(False, "--summary", help="Print a short pt-BR summary instead of JSON"),
) -> None:
    """
    Run the recompute engine on a study payload and print the computed result.
    """
    data = _read_json(payload)
    try:
        inputs = validate_study_inputs(data.get("inputs") or {})
        items = [validate_line_item(li) for li in data.get("line_items") or []]
        if data.get("thresholds"):
            thresholds = UserThresholds(**data["thresholds"])
        else:
            thresholds = default_thresholds_from_config(config)
    except ValueError as e:
        _fail(str(e))
        return

    logger.info("Recomputing study", payload=str(payload), line_items=len(items))
    result = recompute_study(
        inputs,
        items,
        thresholds,
        data.get("provider_contracts_total", 0),
        data.get("construction_total", 0),
        data.get("bills_paid_total", 0),
        money=money_context_from_config(config),
    )

    if not summary:
        typer.echo(result.model_dump_json(indent=2))
        return

    typer.echo(f"Total desembolsado: {format_brl(result.total_disbursed)}")
    typer.echo(f"Lucro: {format_brl(result.profit)}")
    typer.echo(f"ROI: {format_percent(result.roi)}")
    typer.echo(f"Viabilidade: {result.viability_indicator}")
    if result.missing_fields:
        typer.echo("Pendências: " + ", ".join(result.missing_fields))


@app.command("distribute-pv")
def distribute_pv_cmd(
    stage_id: str = typer.Option(..., "--stage-id"),
    start: str = typer.Option(..., "--start", help="YYYY-MM-DD"),
    end: Optional[str] = typer.Option(None, "--end", help="YYYY-MM-DD (defaults to start)"),
    value: str = typer.Option(..., "--value", help="Total stage value in currency, e.g. 1000.00"),
) -> None:
    """
    Spread a stage value over months, pro rata to days.
    """
    try:
        start_d = date.fromisoformat(start)
        end_d = date.fromisoformat(end) if end else start_d
        cents = value_to_cents(Decimal(value.replace(",", ".")))
    except (ValueError, ArithmeticError) as e:
        _fail(f"invalid argument: {e}")
        return

    rows = distribute_pv(stage_id, start_d, end_d, cents)
    logger.info("Distributed planned value", stage_id=stage_id, months=len(rows))
    typer.echo(json.dumps([r.model_dump(mode="json") for r in rows], indent=2))


@app.command("s-curve")
def s_curve_cmd(
    payload: Path = typer.Argument(..., help="JSON file with stages and monthly_values"),
) -> None:
    """
    Build the cumulative planned vs actual curve for a study.
    """
    data = _read_json(payload)
    try:
        stages = [StageForPV(**s) for s in data.get("stages") or []]
        values = [MonthlyValueRow(**v) for v in data.get("monthly_values") or []]
    except ValueError as e:
        _fail(str(e))
        return

    result = build_s_curve(stages, values)
    typer.echo(result.model_dump_json(indent=2))


if __name__ == "__main__":
    app()
