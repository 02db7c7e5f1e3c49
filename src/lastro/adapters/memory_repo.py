# src/lastro/adapters/memory_repo.py
from __future__ import annotations

import threading
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from lastro.domain.money import D
from lastro.domain.ports import PlannedValuesPlan
from lastro.domain.stages import PVRow, StageForPV
from lastro.domain.study import (
    ComputedResult,
    LineItem,
    StudyInputs,
    StudySnapshot,
    StudyStatus,
    UserThresholds,
)


class InMemoryStudyRepository:
    """
    Process-local store implementing StudyDataLoader, ComputedResultSink and
    StageRepository, backed by plain dicts. Used by the service tests.

    Soft-deleted line items, provider payments and stages are kept but filtered
    out on load, the same way a database loader would.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.inputs: dict[str, StudyInputs] = {}
        self.line_items: dict[str, list[LineItem]] = defaultdict(list)
        self.settings: dict[str, UserThresholds] = {}
        self.provider_payments: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.construction_totals: dict[str, Decimal] = {}
        self.bills_paid_totals: dict[str, Decimal] = {}

        self.computed: dict[str, ComputedResult] = {}
        self.statuses: dict[str, StudyStatus] = {}
        self.derived_inputs: dict[str, dict[str, Decimal]] = {}

        self.stages: dict[str, list[tuple[StageForPV, bool]]] = defaultdict(list)
        self.monthly_values: dict[str, list[PVRow]] = defaultdict(list)
        self.pv_synced_at: dict[str, datetime] = {}

    # ---------- seeding ----------

    def add_study(self, study_id: str, inputs: StudyInputs) -> None:
        self.inputs[study_id] = inputs

    def add_line_item(self, study_id: str, item: LineItem) -> None:
        self.line_items[study_id].append(item)

    def set_user_settings(self, user_id: str, thresholds: UserThresholds) -> None:
        self.settings[user_id] = thresholds

    def add_provider_payment(
        self,
        study_id: str,
        amount: Any,
        *,
        status: str = "PAID",
        is_deleted: bool = False,
    ) -> None:
        self.provider_payments[study_id].append(
            {"amount": D(amount), "status": status, "is_deleted": is_deleted}
        )

    def set_construction_total(self, study_id: str, total: Any) -> None:
        self.construction_totals[study_id] = D(total)

    def set_bills_paid_total(self, study_id: str, total: Any) -> None:
        self.bills_paid_totals[study_id] = D(total)

    def add_stage(self, study_id: str, stage: StageForPV, *, is_deleted: bool = False) -> None:
        self.stages[study_id].append((stage, is_deleted))

    # ---------- StudyDataLoader ----------

    def load_study(self, study_id: str, user_id: str) -> StudySnapshot | None:
        inputs = self.inputs.get(study_id)
        thresholds = self.settings.get(user_id)
        if inputs is None or thresholds is None:
            return None

        provider_total = sum(
            (
                p["amount"]
                for p in self.provider_payments.get(study_id, [])
                if not p["is_deleted"] and p["status"] == "PAID"
            ),
            Decimal(0),
        )
        return StudySnapshot(
            inputs=inputs,
            line_items=[li for li in self.line_items.get(study_id, []) if not li.is_deleted],
            thresholds=thresholds,
            provider_contracts_total=provider_total,
            construction_total=self.construction_totals.get(study_id, Decimal(0)),
            bills_paid_total=self.bills_paid_totals.get(study_id, Decimal(0)),
        )

    # ---------- ComputedResultSink ----------

    def save_computed(self, study_id: str, result: ComputedResult) -> None:
        self.computed[study_id] = result

    def set_study_status(self, study_id: str, status: StudyStatus) -> None:
        self.statuses[study_id] = status

    def update_derived_inputs(self, study_id: str, fields: dict) -> None:
        self.derived_inputs[study_id] = dict(fields)
        if study_id in self.inputs:
            self.inputs[study_id] = self.inputs[study_id].model_copy(update=fields)

    # ---------- StageRepository ----------

    def list_active_stages(self, study_id: str) -> list[StageForPV]:
        return [s for s, deleted in self.stages.get(study_id, []) if not deleted]

    def last_pv_sync(self, study_id: str) -> datetime | None:
        return self.pv_synced_at.get(study_id)

    def sync_planned_values(
        self,
        study_id: str,
        plan: PlannedValuesPlan,
        synced_at: datetime | None = None,
    ) -> int | None:
        with self._lock:
            chunks = plan(self.list_active_stages(study_id), self.last_pv_sync(study_id))
            if chunks is None:
                return None
            return self._replace_planned_values(study_id, chunks, synced_at or datetime.now(timezone.utc))

    def _replace_planned_values(
        self,
        study_id: str,
        chunks: Iterable[list[PVRow]],
        synced_at: datetime,
    ) -> int:
        # build the new row set first so a failing chunk leaves the old rows intact
        new_rows: list[PVRow] = []
        for chunk in chunks:
            new_rows.extend(chunk)
        kept = [r for r in self.monthly_values.get(study_id, []) if r.value_type != "planned"]
        self.monthly_values[study_id] = kept + new_rows
        self.pv_synced_at[study_id] = synced_at
        return len(new_rows)

    def planned_values(self, study_id: str) -> list[PVRow]:
        return [r for r in self.monthly_values.get(study_id, []) if r.value_type == "planned"]
