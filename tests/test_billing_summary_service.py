import threading
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from config import settings
from models import BillingItemStatus, BillingSummary, BillingType, CommissionType, RuleBillingType, SummaryStatus
from models.billing_settings import TaxRoundingMode
from schemas.billing_summary import SkipReason, SummaryAction
from services import conflict_guard
from services.billing_summary_service import BillingSummaryService, aggregate_items
from services.exceptions import NotFoundError, ValidationError

from conftest import MONTH


def _summaries(db):
     db.expire_all()
     return db.query(BillingSummary).order_by(BillingSummary.collector_id).all()


def test_summary_buckets_items_by_type(db, seed) -> None:
     org = seed.org()
     collector = seed.collector(org)
     seed.item(collector, 50000, BillingType.FIXED)
     seed.item(collector, 30000, BillingType.METERED)
     seed.item(collector, 20000, BillingType.OTHER)

     result = BillingSummaryService.generate_summaries(db, org.id, "2025-09", tax_rate=Decimal("0.10"))

     assert result.generated_count == 1
     assert result.skipped_count == 0
     assert result.error_count == 0
     entry = result.generated[0]
     assert entry.action == SummaryAction.CREATED
     assert entry.total_amount == Decimal("110000")

     summary = _summaries(db)[0]
     assert summary.total_fixed_amount == Decimal("50000")
     assert summary.total_metered_amount == Decimal("30000")
     assert summary.total_other_amount == Decimal("20000")
     assert summary.subtotal_amount == Decimal("100000")
     assert summary.tax_amount == Decimal("10000")
     assert summary.total_amount == Decimal("110000")
     assert (summary.fixed_items_count, summary.metered_items_count, summary.other_items_count) == (1, 1, 1)
     assert summary.total_items_count == 3
     assert summary.status == SummaryStatus.DRAFT
     assert summary.billing_month == MONTH


def test_only_approved_visible_items_of_the_month_count(db, seed) -> None:
     org = seed.org()
     collector = seed.collector(org)
     seed.item(collector, 10000)
     seed.item(collector, 99999, status=BillingItemStatus.DRAFT)
     seed.item(collector, 99999, status=BillingItemStatus.REJECTED)
     seed.item(collector, 99999, deleted_at=datetime(2025, 9, 20))
     seed.item(collector, 99999, month=date(2025, 8, 1))

     BillingSummaryService.generate_summaries(db, org.id, MONTH)

     summary = _summaries(db)[0]
     assert summary.subtotal_amount == Decimal("10000")
     assert summary.total_items_count == 1


def test_default_tax_rate_is_applied(db, seed) -> None:
     org = seed.org()
     seed.item(seed.collector(org), 12345)

     BillingSummaryService.generate_summaries(db, org.id, MONTH)

     # 1234.5 truncated
     assert _summaries(db)[0].tax_amount == Decimal("1234")


def test_organization_rounding_mode_is_used(db, seed) -> None:
     org = seed.org()
     seed.settings(org, tax_rounding_mode=TaxRoundingMode.CEIL)
     seed.item(seed.collector(org), 12345)

     BillingSummaryService.generate_summaries(db, org.id, MONTH, tax_rate="0.10")

     assert _summaries(db)[0].tax_amount == Decimal("1235")


def test_organization_tax_rate_is_the_default(db, seed) -> None:
     org = seed.org()
     seed.settings(org, tax_rate=Decimal("0.08"))
     seed.item(seed.collector(org), 100000)

     BillingSummaryService.generate_summaries(db, org.id, MONTH)

     summary = _summaries(db)[0]
     assert summary.tax_rate == Decimal("0.08")
     assert summary.tax_amount == Decimal("8000")
     assert summary.total_amount == Decimal("108000")


def test_explicit_tax_rate_overrides_organization_setting(db, seed) -> None:
     org = seed.org()
     seed.settings(org, tax_rate=Decimal("0.08"))
     seed.item(seed.collector(org), 100000)

     BillingSummaryService.generate_summaries(db, org.id, MONTH, tax_rate="0.10")

     summary = _summaries(db)[0]
     assert summary.tax_rate == Decimal("0.10")
     assert summary.tax_amount == Decimal("10000")


def test_configured_default_tax_rate_is_used(db, seed, monkeypatch) -> None:
     monkeypatch.setattr(settings, "DEFAULT_TAX_RATE", Decimal("0.05"))
     org = seed.org()
     seed.item(seed.collector(org), 100000)

     BillingSummaryService.generate_summaries(db, org.id, MONTH)

     assert _summaries(db)[0].tax_amount == Decimal("5000")


def test_collector_without_items_is_skipped(db, seed) -> None:
     org = seed.org()
     busy = seed.collector(org, "Busy Haulers")
     seed.collector(org, "Idle Haulers")
     seed.item(busy, 1000)

     result = BillingSummaryService.generate_summaries(db, org.id, MONTH)

     assert result.collectors_processed == 2
     assert result.generated_count == 1
     assert [(s.collector_name, s.reason) for s in result.skipped] == [("Idle Haulers", SkipReason.NO_APPROVED_ITEMS)]


def test_inactive_and_deleted_collectors_are_not_processed(db, seed) -> None:
     org = seed.org()
     seed.item(seed.collector(org, "Active"), 1000)
     seed.item(seed.collector(org, "Inactive", is_active=False), 1000)
     seed.item(seed.collector(org, "Deleted", deleted_at=datetime(2025, 1, 1)), 1000)

     result = BillingSummaryService.generate_summaries(db, org.id, MONTH)

     assert result.collectors_processed == 1
     assert [g.collector_name for g in result.generated] == ["Active"]


def test_no_collectors_returns_empty_result(db, seed) -> None:
     org = seed.org()

     result = BillingSummaryService.generate_summaries(db, org.id, MONTH)

     assert result.collectors_processed == 0
     assert result.generated == [] and result.skipped == [] and result.errors == []


def test_existing_summary_is_skipped_without_force(db, seed) -> None:
     org = seed.org()
     collector = seed.collector(org)
     seed.item(collector, 1000)
     BillingSummaryService.generate_summaries(db, org.id, MONTH)
     seed.item(collector, 500)

     result = BillingSummaryService.generate_summaries(db, org.id, MONTH)

     assert result.generated_count == 0
     assert result.skipped[0].reason == SkipReason.EXISTING_SUMMARY
     summaries = _summaries(db)
     assert len(summaries) == 1
     assert summaries[0].subtotal_amount == Decimal("1000")


def test_force_regenerate_recomputes_from_current_items(db, seed) -> None:
     org = seed.org()
     collector = seed.collector(org)
     seed.item(collector, 1000)
     BillingSummaryService.generate_summaries(db, org.id, MONTH)
     summary_id = _summaries(db)[0].id
     BillingSummaryService.submit_summaries(db, [summary_id])
     BillingSummaryService.approve_summaries(db, [summary_id], approved_by=7)
     seed.item(collector, 500)

     result = BillingSummaryService.generate_summaries(db, org.id, MONTH, force_regenerate=True)

     assert result.generated[0].action == SummaryAction.UPDATED
     summaries = _summaries(db)
     assert len(summaries) == 1
     assert summaries[0].id == summary_id
     assert summaries[0].subtotal_amount == Decimal("1500")
     assert summaries[0].status == SummaryStatus.DRAFT
     assert summaries[0].approved_by is None


def test_regeneration_is_idempotent(db, seed) -> None:
     org = seed.org()
     collector = seed.collector(org)
     seed.item(collector, 1000, BillingType.METERED)
     seed.item(collector, 2000, BillingType.FIXED)

     BillingSummaryService.generate_summaries(db, org.id, MONTH)
     first = _summaries(db)[0].total_amount
     BillingSummaryService.generate_summaries(db, org.id, MONTH, force_regenerate=True)

     assert _summaries(db)[0].total_amount == first == Decimal("3300")


def test_unknown_organization(db) -> None:
     with pytest.raises(NotFoundError):
          BillingSummaryService.generate_summaries(db, 404, MONTH)


@pytest.mark.parametrize("month, rate", [("2025-09-15", "0.10"), ("2025-09", "1.5")])
def test_invalid_input_has_no_side_effects(db, seed, month, rate) -> None:
     org = seed.org()
     seed.item(seed.collector(org), 1000)

     with pytest.raises(ValidationError):
          BillingSummaryService.generate_summaries(db, org.id, month, tax_rate=rate)

     assert _summaries(db) == []


def test_failure_for_one_collector_does_not_stop_others(db, seed, monkeypatch) -> None:
     org = seed.org()
     first = seed.collector(org, "First Haulers")
     second = seed.collector(org, "Second Haulers")
     seed.item(first, 1000)
     seed.item(second, 2000)

     real_commit = db.commit
     calls = {"count": 0}

     def flaky_commit():
          calls["count"] += 1
          if calls["count"] == 1:
               raise OperationalError("COMMIT", {}, Exception("database is locked"))
          real_commit()

     monkeypatch.setattr(db, "commit", flaky_commit)

     result = BillingSummaryService.generate_summaries(db, org.id, MONTH)

     assert result.collectors_processed == 2
     assert [g.collector_name for g in result.generated] == ["Second Haulers"]
     assert len(result.errors) == 1
     error = result.errors[0]
     assert error.collector_id == first.id
     assert error.collector_name == "First Haulers"
     assert error.stage == "upsert"
     assert error.error_type == "PERSISTENCE"

     monkeypatch.undo()
     summaries = _summaries(db)
     assert [s.collector_id for s in summaries] == [second.id]


def test_concurrent_duplicate_is_reported_as_conflict(db, seed, monkeypatch) -> None:
     org = seed.org()
     collector = seed.collector(org)
     seed.item(collector, 1000)
     BillingSummaryService.generate_summaries(db, org.id, MONTH)

     # Another writer got in between the existence check and the insert
     monkeypatch.setattr(conflict_guard, "find_existing_summary", lambda *args, **kwargs: None)

     result = BillingSummaryService.generate_summaries(db, org.id, MONTH)

     assert result.generated_count == 0
     assert result.errors[0].error_type == "CONFLICT"
     assert result.errors[0].stage == "upsert"
     assert len(_summaries(db)) == 1


def test_cancellation_before_start(db, seed) -> None:
     org = seed.org()
     seed.item(seed.collector(org), 1000)
     cancel_event = threading.Event()
     cancel_event.set()

     result = BillingSummaryService.generate_summaries(db, org.id, MONTH, cancel_event=cancel_event)

     assert result.cancelled
     assert result.collectors_processed == 0
     assert _summaries(db) == []


def test_cancellation_keeps_committed_summaries(db, seed, monkeypatch) -> None:
     org = seed.org()
     for name in ("A Haulers", "B Haulers", "C Haulers"):
          seed.item(seed.collector(org, name), 1000)
     cancel_event = threading.Event()
     process = BillingSummaryService._process_collector

     def process_then_cancel(*args, **kwargs):
          process(*args, **kwargs)
          cancel_event.set()

     monkeypatch.setattr(BillingSummaryService, "_process_collector", staticmethod(process_then_cancel))

     result = BillingSummaryService.generate_summaries(db, org.id, MONTH, cancel_event=cancel_event)

     assert result.cancelled
     assert result.collectors_processed == 1
     assert len(_summaries(db)) == 1


def test_summary_notes_describe_collector_rule(db, seed) -> None:
     org = seed.org()
     collector = seed.collector(org)
     seed.item(collector, 1000)
     seed.rule(org, 5, billing_type=RuleBillingType.METERED, collector=collector)
     seed.rule(org, 30000, commission_type=CommissionType.FIXED_AMOUNT, billing_type=RuleBillingType.OTHER)

     BillingSummaryService.generate_summaries(db, org.id, MONTH)

     assert _summaries(db)[0].notes == "Commission: 5% of METERED"


def test_summary_lifecycle_transitions(db, seed) -> None:
     org = seed.org()
     ids = [seed.summary(seed.collector(org, f"C{i}"), fixed=1000, status=SummaryStatus.DRAFT).id for i in range(3)]

     assert BillingSummaryService.submit_summaries(db, ids[:2]) == 2
     # Approve only acts on SUBMITTED rows
     assert BillingSummaryService.approve_summaries(db, ids, approved_by=42) == 2
     assert BillingSummaryService.reject_summaries(db, ids, reason="late") == 0

     statuses = {s.id: s for s in _summaries(db)}
     assert statuses[ids[0]].status == SummaryStatus.APPROVED
     assert statuses[ids[0]].approved_by == 42
     assert statuses[ids[0]].approved_at is not None
     assert statuses[ids[2]].status == SummaryStatus.DRAFT


def test_reject_records_reason(db, seed) -> None:
     org = seed.org()
     summary = seed.summary(seed.collector(org), fixed=1000, status=SummaryStatus.SUBMITTED)

     assert BillingSummaryService.reject_summaries(db, [summary.id], reason="Wrong meter reading") == 1

     rejected = _summaries(db)[0]
     assert rejected.status == SummaryStatus.REJECTED
     assert rejected.rejected_reason == "Wrong meter reading"


def test_list_summaries_filters_and_orders(db, seed) -> None:
     org = seed.org()
     second = seed.collector(org, "Second")
     first = seed.collector(org, "First")
     seed.summary(first, fixed=1, status=SummaryStatus.APPROVED)
     seed.summary(second, fixed=1, status=SummaryStatus.DRAFT)

     all_rows = BillingSummaryService.list_summaries(db, org.id, "2025-09")
     approved = BillingSummaryService.list_summaries(db, org.id, "2025-09", SummaryStatus.APPROVED)

     assert [s.collector_id for s in all_rows] == sorted([first.id, second.id])
     assert [s.collector.company_name for s in approved] == ["First"]


def test_aggregate_items_without_items_is_zero() -> None:
     totals = aggregate_items([])

     assert totals.subtotal_amount == Decimal("0")
     assert totals.total_items_count == 0
