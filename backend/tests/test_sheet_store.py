from unittest.mock import MagicMock

import pytest

from voucher_sheets.abstractions.sheet_store import InMemorySheetStore, SupabaseSheetStore
from voucher_sheets.core.exceptions import DatabaseError, ResourceNotFoundError


SNAPSHOT = [[{"value": "Month", "style": {"bold": True}}, {"value": "=B2*C2"}]]


def test_insert_and_get(sheet_store):
    sheet = sheet_store.insert("owner-1", "Q1 vouchers", SNAPSHOT)

    assert sheet.id
    assert sheet.owner_id == "owner-1"
    assert sheet.created_at is not None
    assert sheet_store.get(sheet.id).data == SNAPSHOT
    assert sheet_store.get("missing") is None


def test_returned_records_are_copies(sheet_store):
    sheet = sheet_store.insert("owner-1", "Q1", SNAPSHOT)
    sheet.data[0][0]["value"] = "changed"
    assert sheet_store.get(sheet.id).data[0][0]["value"] == "Month"


def test_list_for_owner_newest_first(sheet_store):
    first = sheet_store.insert("owner-1", "first", [])
    second = sheet_store.insert("owner-1", "second", [])
    sheet_store.insert("owner-2", "other", [])

    assert [s.name for s in sheet_store.list_for_owner("owner-1")] == ["second", "first"]

    sheet_store.update_data(first.id, SNAPSHOT)
    assert [s.id for s in sheet_store.list_for_owner("owner-1")] == [first.id, second.id]


def test_update_data_replaces_snapshot(sheet_store):
    sheet = sheet_store.insert("owner-1", "Q1", [])
    updated = sheet_store.update_data(sheet.id, SNAPSHOT)

    assert updated.data == SNAPSHOT
    assert updated.updated_at >= sheet.updated_at


def test_update_missing_sheet_raises(sheet_store):
    with pytest.raises(ResourceNotFoundError):
        sheet_store.update_data("missing", SNAPSHOT)


def test_delete(sheet_store):
    sheet = sheet_store.insert("owner-1", "Q1", [])
    assert sheet_store.delete(sheet.id) is True
    assert sheet_store.delete(sheet.id) is False
    assert sheet_store.list_for_owner("owner-1") == []


# Supabase

def _row(**overrides):
    row = {
        "id": "sheet-1",
        "user_id": "owner-1",
        "name": "Q1",
        "data": SNAPSHOT,
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": "2024-01-02T00:00:00+00:00",
    }
    row.update(overrides)
    return row


def test_supabase_list_maps_rows():
    client = MagicMock()
    query = client.table.return_value.select.return_value.eq.return_value.order.return_value
    query.execute.return_value = MagicMock(data=[_row()])

    sheets = SupabaseSheetStore(client, table="voucher_sheets").list_for_owner("owner-1")

    client.table.assert_called_with("voucher_sheets")
    client.table.return_value.select.return_value.eq.assert_called_with("user_id", "owner-1")
    assert len(sheets) == 1
    assert sheets[0].owner_id == "owner-1"
    assert sheets[0].data == SNAPSHOT


def test_supabase_get_missing_returns_none():
    client = MagicMock()
    query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    query.execute.return_value = MagicMock(data=[])

    assert SupabaseSheetStore(client).get("sheet-1") is None


def test_supabase_null_data_reads_as_empty():
    client = MagicMock()
    query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    query.execute.return_value = MagicMock(data=[_row(data=None)])

    assert SupabaseSheetStore(client).get("sheet-1").data == []


def test_supabase_update_without_rows_is_not_found():
    client = MagicMock()
    client.table.return_value.update.return_value.eq.return_value.execute.return_value = MagicMock(data=[])

    with pytest.raises(ResourceNotFoundError):
        SupabaseSheetStore(client).update_data("sheet-1", SNAPSHOT)


def test_supabase_failures_become_database_errors():
    client = MagicMock()
    client.table.return_value.insert.return_value.execute.side_effect = RuntimeError("connection reset")

    with pytest.raises(DatabaseError) as excinfo:
        SupabaseSheetStore(client).insert("owner-1", "Q1", [])
    assert excinfo.value.operation == "insert"
