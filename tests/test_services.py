"""
Tests for delivery_orders.services — the order entry and sync use-cases.
"""

import pytest

from delivery_orders.domain import OrderLine, Product, Store
from delivery_orders.errors import (
    ConflictPending,
    LoadFailure,
    SyncFailure,
    SyncInProgressError,
    ValidationError,
)
from delivery_orders.repository import DuplicateRecordError, RecordNotFoundError
from delivery_orders.services import parse_rows


class TestParseRows:
    def test_blank_rows_skipped(self):
        rows = parse_rows([("", 1), {"itemName": "noodle", "quantity": "3"}, OrderLine("bun", 2)])
        assert rows == [OrderLine("noodle", 3), OrderLine("bun", 2)]

    def test_named_row_without_quantity_rejected(self):
        with pytest.raises(ValidationError, match="noodle"):
            parse_rows([("noodle", "")])

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            parse_rows([("noodle", 0)])

    def test_no_rows(self):
        with pytest.raises(ValidationError, match="at least one"):
            parse_rows([("", 1)])


class TestRefresh:
    def test_catalog_loaded(self, service):
        assert [s.store_name for s in service.stores] == ["Riverside", "Harbour"]
        assert service.unit_for("bun") == "pack"
        assert service.unit_for("unknown") == ""
        assert len(service.book.remote_orders) == 2


class TestOrderEntry:
    def test_eligible_stores(self, service):
        assert [s.store_name for s in service.eligible_stores("2024-05-03")] == ["Harbour"]

    def test_store_defaults(self, service):
        defaults = service.store_defaults("Riverside")
        assert defaults.delivery_time == "07:30"
        assert defaults.lines == [OrderLine("noodle", 10), OrderLine("bun", 2)]

    def test_store_defaults_unknown_store(self, service):
        with pytest.raises(RecordNotFoundError):
            service.store_defaults("Nowhere")

    def test_place_order_stages_lines(self, service):
        staged = service.place_order("2024-05-01", "Riverside", "7:30", [("noodle", 3), ("bun", 1)])
        assert [entry.order.item_name for entry in staged] == ["noodle", "bun"]
        assert all(entry.order.delivery_time == "07:30" for entry in staged)
        # Harbour already has 4 buns on the remote for that day
        assert service.totals()["2024-05-01"] == {"bun": 5, "noodle": 3}

    @pytest.mark.parametrize(
        "day, store, time",
        [("", "Riverside", "08:00"), ("2024-05-01", "", "08:00"), ("2024-05-01", "Riverside", "")],
    )
    def test_required_fields(self, service, day, store, time):
        with pytest.raises(ValidationError):
            service.prepare_order(day, store, time, [("noodle", 1)])
        assert service.book.local_orders == []

    def test_closed_store_rejected(self, service):
        with pytest.raises(ValidationError, match="closed"):
            service.prepare_order("2024-05-03", "Riverside", "08:00", [("noodle", 1)])

    def test_unknown_store_allowed(self, service):
        staged = service.place_order("2024-05-01", "Pop-up", "08:00", [("noodle", 1)])
        assert staged[0].order.store_name == "Pop-up"


class TestDuplicateProtocol:
    def test_prepare_reports_remote_duplicate(self, service):
        draft = service.prepare_order("2024-05-01", "Harbour", "09:00", [("bun", 1), ("noodle", 2)])
        assert draft.has_conflicts
        assert draft.warning.item_names == ["bun"]

    def test_submit_without_override_admits_nothing(self, service):
        draft = service.prepare_order("2024-05-01", "Harbour", "09:00", [("bun", 1), ("noodle", 2)])
        with pytest.raises(ConflictPending) as info:
            service.submit_order(draft)
        assert info.value.warning.item_names == ["bun"]
        assert service.book.local_orders == []

    def test_override_admits_all_rows_unchanged(self, service):
        draft = service.prepare_order("2024-05-01", "Harbour", "09:00", [("bun", 1), ("noodle", 2)])
        staged = service.submit_order(draft, override=True)
        assert [(e.order.item_name, e.order.quantity) for e in staged] == [("bun", 1), ("noodle", 2)]
        assert service.totals()["2024-05-01"]["bun"] == 5

    def test_staged_orders_count_as_duplicates(self, service):
        service.place_order("2024-05-01", "Riverside", "08:00", [("noodle", 3)])
        with pytest.raises(ConflictPending):
            service.place_order("2024-05-01", "Riverside", "08:00", [("noodle", 7)])

    def test_submit_rechecks_against_current_book(self, service):
        draft = service.prepare_order("2024-05-01", "Riverside", "08:00", [("wrapper", 1)])
        assert not draft.has_conflicts
        service.place_order("2024-05-01", "Riverside", "08:00", [("wrapper", 2)])
        with pytest.raises(ConflictPending):
            service.submit_order(draft)


class TestSync:
    def test_sync_orders(self, service, remote):
        service.place_order("2024-05-01", "Riverside", "08:00", [("noodle", 3)])
        service.sync_orders()
        assert service.book.local_orders == []
        assert len(remote.fetch().orders) == 3

    def test_sync_failure_preserves_staged(self, service, remote):
        service.place_order("2024-05-01", "Riverside", "08:00", [("noodle", 3)])
        before = service.book.local_orders
        remote.fail_next()
        with pytest.raises(SyncFailure):
            service.sync_orders()
        assert service.book.local_orders == before

    def test_save_stores_keeps_staged_orders(self, service, remote):
        service.place_order("2024-05-01", "Riverside", "08:00", [("noodle", 3)])
        service.save_stores([Store(store_name="Harbour")])
        assert [s.store_name for s in remote.fetch().stores] == ["Harbour"]
        assert [s.store_name for s in service.stores] == ["Harbour"]
        assert len(service.book.local_orders) == 1

    def test_save_stores_rejects_duplicate_names(self, service):
        with pytest.raises(DuplicateRecordError):
            service.save_stores([Store(store_name="A"), Store(store_name="A")])

    def test_rejected_save_leaves_catalog_untouched(self, service, remote):
        before = service.stores.list()
        with service.book.exclusive():
            with pytest.raises(SyncInProgressError):
                service.save_stores([Store(store_name="Elsewhere")])
            with pytest.raises(SyncInProgressError):
                service.save_products([Product("rice", "kg")])
        assert service.stores.list() == before
        assert "rice" not in service.products
        assert "saveStores" not in remote.calls

    def test_save_products_failure_keeps_local_edits(self, service, remote):
        remote.fail_next(action="saveProducts")
        with pytest.raises(SyncFailure):
            service.save_products([Product("noodle", "kg")])
        assert service.products.get("noodle").unit == "kg"
        assert remote.fetch().products[0].unit == "jin"

    def test_refresh_failure(self, service, remote):
        remote.fail_next()
        with pytest.raises(LoadFailure):
            service.refresh()
        assert len(service.stores) == 2

    def test_toggle_holiday_then_save(self, service, remote):
        store = service.toggle_holiday("Harbour", "2024-05-01")
        assert "2024-05-01" in store.holiday_dates
        assert [s.store_name for s in service.eligible_stores("2024-05-01")] == ["Riverside"]
        service.save_stores()
        saved = {s.store_name: s for s in remote.fetch().stores}
        assert saved["Harbour"].holiday_dates == {"2024-05-01"}


class TestViews:
    def test_summary_uses_catalog_order(self, service):
        service.place_order("2024-05-01", "Riverside", "08:00", [("wrapper", 1), ("noodle", 2)])
        day = service.production_summary()[0]
        assert day.date == "2024-05-01"
        assert [line.item_name for line in day.lines] == ["noodle", "bun", "wrapper"]

    def test_preview_includes_staged(self, service):
        service.place_order("2024-04-30", "Riverside", "08:00", [("noodle", 1)])
        preview = service.orders_for_preview()
        assert preview[0].is_local
        assert len(preview) == 3
