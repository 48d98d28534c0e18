import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from voucher_sheets.abstractions.sheet_store import InMemorySheetStore
from voucher_sheets.core.exceptions import ResourceNotFoundError, ValidationError
from voucher_sheets.services.voucher_sheet_service import VoucherSheetService


def test_create_sheet_stores_empty_snapshot(sheet_service, sheet_store):
    sheet = sheet_service.create_sheet("owner-1", "  Q1 vouchers  ")

    assert sheet.name == "Q1 vouchers"
    assert sheet_store.get(sheet.id).data == []


@pytest.mark.parametrize("owner_id,name", [("owner-1", ""), ("owner-1", "   "), ("", "Q1")])
def test_create_sheet_validates_input(sheet_service, owner_id, name):
    with pytest.raises(ValidationError):
        sheet_service.create_sheet(owner_id, name)


def test_new_sheet_opens_with_seed_layout(sheet_service):
    sheet = sheet_service.create_sheet("owner-1", "Q1")
    model = sheet_service.open_session(sheet.id)

    assert model.row_count == 14
    assert model.column_count == 13
    assert model.cell(13, 0).raw_text == "TOTAL"


def test_unknown_sheet(sheet_service):
    with pytest.raises(ResourceNotFoundError):
        sheet_service.get_sheet("missing")
    with pytest.raises(ResourceNotFoundError):
        sheet_service.open_session("missing")


def test_edits_are_persisted_only_on_save(sheet_service, sheet_store):
    sheet = sheet_service.create_sheet("owner-1", "Q1")
    sheet_service.edit(sheet.id, lambda model: model.set_cell_text(1, 1, "5"))

    assert sheet_store.get(sheet.id).data == []

    saved = sheet_service.save(sheet.id)

    assert saved.data[1][1] == {"value": "5"}
    assert saved.data[1][3] == {"value": "=B2*C2"}
    assert all("computed" not in cell for row in saved.data for cell in row)


def test_close_session_discards_unsaved_edits(sheet_service):
    sheet = sheet_service.create_sheet("owner-1", "Q1")
    sheet_service.edit(sheet.id, lambda model: model.set_cell_text(1, 1, "5"))

    assert sheet_service.close_session(sheet.id) is True
    assert sheet_service.has_session(sheet.id) is False
    assert sheet_service.open_session(sheet.id).cell(1, 1).raw_text == ""


def test_saved_sheet_reloads_after_session_closes(sheet_service):
    sheet = sheet_service.create_sheet("owner-1", "Q1")
    sheet_service.edit(sheet.id, lambda model: model.set_cell_text(1, 1, "5"))
    sheet_service.edit(sheet.id, lambda model: model.set_cell_text(1, 2, "4"))
    sheet_service.save(sheet.id)
    sheet_service.close_session(sheet.id)

    model = sheet_service.open_session(sheet.id)
    assert model.display_value(1, 3) == "20"


def test_only_sheet_cannot_be_deleted(sheet_service):
    sheet = sheet_service.create_sheet("owner-1", "Q1")
    with pytest.raises(ValidationError):
        sheet_service.delete_sheet(sheet.id)
    assert sheet_service.get_sheet(sheet.id)


def test_delete_sheet_drops_its_session(sheet_service):
    first = sheet_service.create_sheet("owner-1", "Q1")
    second = sheet_service.create_sheet("owner-1", "Q2")
    sheet_service.open_session(first.id)

    sheet_service.delete_sheet(first.id)

    assert sheet_service.has_session(first.id) is False
    assert [s.id for s in sheet_service.list_sheets("owner-1")] == [second.id]


def test_export_csv_uses_session_grid(sheet_service):
    sheet = sheet_service.create_sheet("owner-1", "Q1")
    sheet_service.edit(sheet.id, lambda model: model.set_cell_text(1, 1, "10"))

    lines = sheet_service.export_csv(sheet.id).split("\n")
    assert lines[13].startswith('"TOTAL","10",')


def test_concurrent_edits_are_serialized(sheet_service):
    sheet = sheet_service.create_sheet("owner-1", "Q1")

    def add_row(_):
        sheet_service.edit(sheet.id, lambda model: model.insert_row())

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(add_row, range(40)))

    model = sheet_service.open_session(sheet.id)
    assert model.row_count == 14 + 40
    assert model.grid.is_rectangular()


class SlowListingStore(InMemorySheetStore):
    """Widens the window between the last-sheet check and the delete."""

    def list_for_owner(self, owner_id):
        sheets = super().list_for_owner(owner_id)
        time.sleep(0.05)
        return sheets


def test_concurrent_deletes_keep_one_sheet():
    service = VoucherSheetService(SlowListingStore())
    first = service.create_sheet("owner-1", "Q1")
    second = service.create_sheet("owner-1", "Q2")

    def delete(sheet_id):
        try:
            service.delete_sheet(sheet_id)
            return "deleted"
        except ValidationError:
            return "rejected"

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = sorted(pool.map(delete, [first.id, second.id]))

    assert outcomes == ["deleted", "rejected"]
    assert len(service.list_sheets("owner-1")) == 1


def test_sheet_locks_are_released_after_use(sheet_service):
    first = sheet_service.create_sheet("owner-1", "Q1")
    second = sheet_service.create_sheet("owner-1", "Q2")
    sheet_service.edit(first.id, lambda model: model.set_cell_text(1, 1, "5"))
    sheet_service.export_csv(first.id)
    sheet_service.save(first.id)
    sheet_service.delete_sheet(second.id)
    with pytest.raises(ResourceNotFoundError):
        sheet_service.open_session("missing")

    assert sheet_service._locks == {}


def test_idle_saved_sessions_are_evicted(sheet_store):
    service = VoucherSheetService(sheet_store, session_idle_seconds=60)
    viewed = service.create_sheet("owner-1", "viewed")
    saved = service.create_sheet("owner-1", "saved")

    service.open_session(viewed.id)
    service.edit(saved.id, lambda model: model.set_cell_text(1, 1, "5"))
    service.save(saved.id)

    assert service.evict_idle_sessions(now=time.monotonic() + 10) == 0
    assert service.evict_idle_sessions(now=time.monotonic() + 120) == 2
    assert not service.has_session(viewed.id)
    assert not service.has_session(saved.id)

    # Reopening reads the saved snapshot back
    assert service.open_session(saved.id).cell(1, 1).raw_text == "5"


def test_idle_sessions_with_unsaved_edits_are_kept(sheet_store):
    service = VoucherSheetService(sheet_store, session_idle_seconds=60)
    sheet = service.create_sheet("owner-1", "Q1")
    service.edit(sheet.id, lambda model: model.set_cell_text(1, 1, "5"))

    assert service.has_unsaved_edits(sheet.id)
    assert service.evict_idle_sessions(now=time.monotonic() + 120) == 0
    assert service.open_session(sheet.id).cell(1, 1).raw_text == "5"

    service.save(sheet.id)
    assert not service.has_unsaved_edits(sheet.id)
    assert service.evict_idle_sessions(now=time.monotonic() + 120) == 1


def test_viewing_does_not_mark_edits(sheet_service):
    sheet = sheet_service.create_sheet("owner-1", "Q1")
    sheet_service.view(sheet.id, lambda model: model.row_count)
    sheet_service.export_csv(sheet.id)
    assert not sheet_service.has_unsaved_edits(sheet.id)
