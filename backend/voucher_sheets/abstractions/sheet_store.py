"""
Sheet persistence abstraction (voucher_sheets table / equivalent).
Snapshots are always saved whole; concurrent saves are last-write-wins.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import copy
import itertools
import logging
import uuid

from voucher_sheets.core.exceptions import DatabaseError, ResourceNotFoundError
from voucher_sheets.core.unified_data_models import SheetRecord

logger = logging.getLogger(__name__)

Snapshot = List[List[Dict[str, Any]]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SheetStore(ABC):
    """Interface for named grid snapshots."""

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> List[SheetRecord]:
        """Sheets of one owner, most recently updated first."""
        pass

    @abstractmethod
    def get(self, sheet_id: str) -> Optional[SheetRecord]:
        """Get a single sheet by id. Returns None if not found."""
        pass

    @abstractmethod
    def insert(self, owner_id: str, name: str, data: Snapshot) -> SheetRecord:
        """Insert a new sheet. Returns the stored record including id."""
        pass

    @abstractmethod
    def update_data(self, sheet_id: str, data: Snapshot) -> SheetRecord:
        """Replace the whole snapshot and stamp updated_at. Raises ResourceNotFoundError."""
        pass

    @abstractmethod
    def delete(self, sheet_id: str) -> bool:
        """Delete a sheet. Returns False if it did not exist."""
        pass


class InMemorySheetStore(SheetStore):
    """Process-local store, used when Supabase is not configured and in tests."""

    def __init__(self):
        self._sheets: Dict[str, SheetRecord] = {}
        # Save order, so sheets saved within the same clock tick still sort newest first
        self._ticks = itertools.count()
        self._touched: Dict[str, int] = {}

    def list_for_owner(self, owner_id: str) -> List[SheetRecord]:
        sheets = [copy.deepcopy(s) for s in self._sheets.values() if s.owner_id == owner_id]
        return sorted(sheets, key=lambda s: self._touched[s.id], reverse=True)

    def get(self, sheet_id: str) -> Optional[SheetRecord]:
        sheet = self._sheets.get(sheet_id)
        return copy.deepcopy(sheet) if sheet else None

    def insert(self, owner_id: str, name: str, data: Snapshot) -> SheetRecord:
        now = _now()
        sheet = SheetRecord(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=name,
            data=copy.deepcopy(data),
            created_at=now,
            updated_at=now,
        )
        self._sheets[sheet.id] = sheet
        self._touched[sheet.id] = next(self._ticks)
        logger.info(f"[SHEET_STORE] Created sheet {sheet.id} ({name!r}) for {owner_id}")
        return copy.deepcopy(sheet)

    def update_data(self, sheet_id: str, data: Snapshot) -> SheetRecord:
        sheet = self._sheets.get(sheet_id)
        if sheet is None:
            raise ResourceNotFoundError("Sheet", sheet_id)
        sheet.data = copy.deepcopy(data)
        sheet.updated_at = _now()
        self._touched[sheet_id] = next(self._ticks)
        logger.info(f"[SHEET_STORE] Saved sheet {sheet_id} ({len(data)} rows)")
        return copy.deepcopy(sheet)

    def delete(self, sheet_id: str) -> bool:
        if sheet_id in self._sheets:
            del self._sheets[sheet_id]
            self._touched.pop(sheet_id, None)
            logger.info(f"[SHEET_STORE] Deleted sheet {sheet_id}")
            return True
        return False


class SupabaseSheetStore(SheetStore):
    """Supabase implementation for the voucher_sheets table."""

    def __init__(self, client, table: str = "voucher_sheets"):
        self._client = client
        self._table = table

    @staticmethod
    def _to_record(row: Dict[str, Any]) -> SheetRecord:
        return SheetRecord(
            id=str(row["id"]),
            owner_id=str(row.get("user_id") or ""),
            name=row.get("name") or "",
            data=row.get("data") or [],
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def list_for_owner(self, owner_id: str) -> List[SheetRecord]:
        try:
            r = (
                self._client.table(self._table)
                .select("*")
                .eq("user_id", owner_id)
                .order("updated_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(f"[SHEET_STORE] list sheets for {owner_id}: {e}")
            raise DatabaseError(f"Failed to list sheets: {e}", operation="list") from e
        return [self._to_record(row) for row in (r.data or [])]

    def get(self, sheet_id: str) -> Optional[SheetRecord]:
        try:
            r = self._client.table(self._table).select("*").eq("id", sheet_id).limit(1).execute()
        except Exception as e:
            logger.error(f"[SHEET_STORE] get sheet {sheet_id}: {e}")
            raise DatabaseError(f"Failed to load sheet: {e}", operation="get") from e
        return self._to_record(r.data[0]) if r.data else None

    def insert(self, owner_id: str, name: str, data: Snapshot) -> SheetRecord:
        payload = {"user_id": owner_id, "name": name, "data": data}
        try:
            r = self._client.table(self._table).insert(payload).execute()
        except Exception as e:
            logger.error(f"[SHEET_STORE] insert sheet {name!r}: {e}")
            raise DatabaseError(f"Failed to create sheet: {e}", operation="insert") from e
        if not r.data:
            raise DatabaseError("insert returned no data", operation="insert")
        return self._to_record(r.data[0])

    def update_data(self, sheet_id: str, data: Snapshot) -> SheetRecord:
        payload = {"data": data, "updated_at": _now().isoformat()}
        try:
            r = self._client.table(self._table).update(payload).eq("id", sheet_id).execute()
        except Exception as e:
            logger.error(f"[SHEET_STORE] save sheet {sheet_id}: {e}")
            raise DatabaseError(f"Failed to save sheet: {e}", operation="update") from e
        if not r.data:
            raise ResourceNotFoundError("Sheet", sheet_id)
        return self._to_record(r.data[0])

    def delete(self, sheet_id: str) -> bool:
        try:
            r = self._client.table(self._table).delete().eq("id", sheet_id).execute()
        except Exception as e:
            logger.error(f"[SHEET_STORE] delete sheet {sheet_id}: {e}")
            raise DatabaseError(f"Failed to delete sheet: {e}", operation="delete") from e
        return bool(r.data)
