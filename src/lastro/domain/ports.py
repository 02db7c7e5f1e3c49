# src/lastro/domain/ports.py
from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Optional, Protocol

from lastro.domain.stages import PVRow, StageForPV
from lastro.domain.study import ComputedResult, StudySnapshot, StudyStatus


# ----------------------------
# Study data loading
# ----------------------------

class StudyDataLoader(Protocol):
    def load_study(self, study_id: str, user_id: str) -> StudySnapshot | None:
        """
        Inputs, active line items, the user's thresholds and the three
        auxiliary totals (paid provider payments, construction, paid bills).

        Returns None when the study inputs or the user settings do not exist.
        """
        ...


# ----------------------------
# Computed result persistence
# ----------------------------

class ComputedResultSink(Protocol):
    def save_computed(self, study_id: str, result: ComputedResult) -> None:
        ...

    def set_study_status(self, study_id: str, status: StudyStatus) -> None:
        ...

    def update_derived_inputs(self, study_id: str, fields: dict) -> None:
        ...


# ----------------------------
# Construction stages / planned values
# ----------------------------

# (active stages, last sync time) -> chunks of planned rows, or None to skip the write
PlannedValuesPlan = Callable[
    [list[StageForPV], Optional[datetime]],
    Optional[Iterable[list[PVRow]]],
]


class StageRepository(Protocol):
    def list_active_stages(self, study_id: str) -> list[StageForPV]:
        ...

    def last_pv_sync(self, study_id: str) -> datetime | None:
        ...

    def sync_planned_values(
        self,
        study_id: str,
        plan: PlannedValuesPlan,
        synced_at: datetime | None = None,
    ) -> int | None:
        """
        Load the active stages and the last sync time, ask `plan` for the new
        planned rows and, unless it returns None, delete every planned row of
        the study, insert the new ones and record the sync time.

        The whole sequence runs as one locked transaction. `synced_at` defaults
        to the time the lock was taken. Returns the inserted row count, or None
        when nothing was written.
        """
        ...
