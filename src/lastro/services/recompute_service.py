# src/lastro/services/recompute_service.py
from __future__ import annotations

from lastro.adapters.logging_utils import bind_study, get_logger
from lastro.analysis.recompute import recompute_study
from lastro.domain.money import DEFAULT_MONEY, MoneyContext
from lastro.domain.ports import ComputedResultSink, StudyDataLoader
from lastro.domain.study import ComputedResult

logger = get_logger(__name__)


def recompute_and_save(
    study_id: str,
    user_id: str,
    loader: StudyDataLoader,
    sink: ComputedResultSink,
    *,
    money: MoneyContext = DEFAULT_MONEY,
) -> ComputedResult | None:
    """
    Reload a study, run the recompute engine and write everything back.

    Called after every save on any input / line item screen. Writes:
      - the study_computed record
      - the study status (COMPLETE when nothing is missing, else DRAFT)
      - the derived input fields (monthly payment, payoff, price per m²)

    Returns None when the study or the user's settings are not found.
    """
    log = bind_study(logger, study_id, user_id=user_id)

    snapshot = loader.load_study(study_id, user_id)
    if snapshot is None:
        log.info("recompute_skipped_missing_study_or_settings")
        return None

    result = recompute_study(
        snapshot.inputs,
        snapshot.line_items,
        snapshot.thresholds,
        snapshot.provider_contracts_total,
        snapshot.construction_total,
        snapshot.bills_paid_total,
        money=money,
    )

    try:
        sink.save_computed(study_id, result)
        sink.set_study_status(study_id, result.study_status)
        sink.update_derived_inputs(study_id, result.derived_input_fields())
    except Exception:
        log.exception("recompute_persist_failed")
        raise

    log.info(
        "study_recomputed",
        extra={
            "context": {
                "roi": result.roi,
                "viability": result.viability_indicator,
                "missing": len(result.missing_fields),
            }
        },
    )
    return result
