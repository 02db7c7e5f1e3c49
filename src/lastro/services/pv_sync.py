# src/lastro/services/pv_sync.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional

from lastro.adapters.config import config
from lastro.adapters.logging_utils import bind_study, get_logger
from lastro.analysis.pv import build_planned_values, eligible_stages, needs_pv_sync
from lastro.domain.ports import StageRepository
from lastro.domain.stages import PVRow, StageForPV

logger = get_logger(__name__)


@dataclass
class PVSyncReport:
    study_id: str
    synced: bool
    leaf_stages: int = 0
    rows: int = 0


def _chunked(rows: list[PVRow], size: int) -> Iterator[list[PVRow]]:
    for i in range(0, len(rows), size):
        yield rows[i : i + size]


def sync_all_pv(
    study_id: str,
    repo: StageRepository,
    *,
    now: datetime | None = None,
    force: bool = False,
    chunk_size: int | None = None,
) -> PVSyncReport:
    """
    Regenerate the planned monthly values of every leaf stage of a study.

    Skips the write when nothing changed since the last sync (unless force=True).
    Otherwise all planned rows of the study are replaced. Stage load, dirty-check
    and replace run inside one locked repository transaction, so concurrent
    syncs of the same study serialize. Re-running is idempotent.
    """
    log = bind_study(logger, study_id)
    chunk_size = chunk_size or config.PV_INSERT_CHUNK_SIZE
    report = PVSyncReport(study_id=study_id, synced=False)

    def plan(stages: list[StageForPV], last_synced: Optional[datetime]) -> Optional[list[list[PVRow]]]:
        if not force and not needs_pv_sync(stages, last_synced):
            log.debug("pv_sync_not_needed", extra={"context": {"last_synced": last_synced}})
            return None
        report.leaf_stages = len(eligible_stages(stages))
        return list(_chunked(build_planned_values(stages), chunk_size))

    try:
        inserted = repo.sync_planned_values(study_id, plan, now)
    except Exception:
        log.exception("pv_sync_replace_failed")
        raise

    if inserted is None:
        return report

    report.synced = True
    report.rows = inserted
    log.info(
        "pv_synced",
        extra={"context": {"leaf_stages": report.leaf_stages, "rows": inserted}},
    )
    return report
