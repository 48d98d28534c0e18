"""
Voucher sheet service.

Sheets are listed, created and deleted through the sheet store. An opened
sheet gets an editing session: one GridModel held in memory until it is
closed. Edits change only the session; save() writes the whole snapshot back
(last write wins). Every operation on a sheet runs under that sheet's lock,
so a grid only ever has one writer at a time.

A sheet lock exists only while some caller holds or waits for it. Sessions
with no unsaved edits are evicted once they have been idle for
session_idle_seconds; sessions with unsaved edits stay until saved or closed.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Set, TypeVar

from voucher_sheets.abstractions.sheet_store import SheetStore
from voucher_sheets.core.exceptions import ResourceNotFoundError, ValidationError
from voucher_sheets.core.unified_data_models import SheetRecord
from voucher_sheets.services.csv_export import grid_to_csv
from voucher_sheets.services.grid_model import GridModel

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SESSION_IDLE_SECONDS = 1800


class _SheetLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class VoucherSheetService:
    """Sheet CRUD plus in-memory editing sessions"""

    def __init__(self, store: SheetStore, session_idle_seconds: float = DEFAULT_SESSION_IDLE_SECONDS):
        self.store = store
        self.session_idle_seconds = session_idle_seconds
        self._sessions: Dict[str, GridModel] = {}
        self._last_used: Dict[str, float] = {}
        self._unsaved: Set[str] = set()
        self._locks: Dict[str, _SheetLock] = {}
        self._registry_lock = threading.Lock()
        # Held across the last-sheet check and the delete
        self._delete_lock = threading.Lock()

    @contextmanager
    def _locked(self, sheet_id: str) -> Iterator[None]:
        with self._registry_lock:
            entry = self._locks.get(sheet_id)
            if entry is None:
                entry = self._locks[sheet_id] = _SheetLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._registry_lock:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[sheet_id]

    def _require_sheet(self, sheet_id: str) -> SheetRecord:
        sheet = self.store.get(sheet_id)
        if sheet is None:
            raise ResourceNotFoundError("Sheet", sheet_id)
        return sheet

    # Sheets

    def list_sheets(self, owner_id: str) -> List[SheetRecord]:
        return self.store.list_for_owner(owner_id)

    def get_sheet(self, sheet_id: str) -> SheetRecord:
        return self._require_sheet(sheet_id)

    def create_sheet(self, owner_id: str, name: str) -> SheetRecord:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Sheet name must not be empty", field="name")
        if not owner_id:
            raise ValidationError("Owner id must not be empty", field="owner_id")
        # Empty data opens as the default voucher layout
        sheet = self.store.insert(owner_id, name, [])
        logger.info(f"[SHEETS] Created sheet {sheet.id} ({name!r}) for owner {owner_id}")
        return sheet

    def delete_sheet(self, sheet_id: str) -> None:
        with self._delete_lock:
            sheet = self._require_sheet(sheet_id)
            if len(self.store.list_for_owner(sheet.owner_id)) <= 1:
                raise ValidationError("Cannot delete the only sheet of an owner", field="sheet_id")
            with self._locked(sheet_id):
                self.store.delete(sheet_id)
                self._drop_session(sheet_id)
        logger.info(f"[SHEETS] Deleted sheet {sheet_id}")

    # Sessions

    def _session(self, sheet_id: str) -> GridModel:
        model = self._sessions.get(sheet_id)
        if model is None:
            sheet = self._require_sheet(sheet_id)
            model = GridModel.from_snapshot(sheet.data)
            self._sessions[sheet_id] = model
            logger.info(
                f"[SHEETS] Opened sheet {sheet_id} ({model.row_count}x{model.column_count})",
                extra={"sheet_id": sheet_id},
            )
        self._last_used[sheet_id] = time.monotonic()
        return model

    def _drop_session(self, sheet_id: str) -> bool:
        self._last_used.pop(sheet_id, None)
        self._unsaved.discard(sheet_id)
        return self._sessions.pop(sheet_id, None) is not None

    def open_session(self, sheet_id: str) -> GridModel:
        self.evict_idle_sessions()
        with self._locked(sheet_id):
            return self._session(sheet_id)

    def close_session(self, sheet_id: str) -> bool:
        with self._locked(sheet_id):
            return self._drop_session(sheet_id)

    def edit(self, sheet_id: str, operation: Callable[[GridModel], T]) -> T:
        """Run one grid model operation on the sheet's session, serialized per sheet"""
        self.evict_idle_sessions()
        with self._locked(sheet_id):
            model = self._session(sheet_id)
            self._unsaved.add(sheet_id)
            return operation(model)

    def view(self, sheet_id: str, reader: Callable[[GridModel], T]) -> T:
        """Like edit(), for operations that leave the grid unchanged"""
        self.evict_idle_sessions()
        with self._locked(sheet_id):
            return reader(self._session(sheet_id))

    def save(self, sheet_id: str) -> SheetRecord:
        with self._locked(sheet_id):
            model = self._session(sheet_id)
            sheet = self.store.update_data(sheet_id, model.to_snapshot())
            self._unsaved.discard(sheet_id)
        logger.info(f"[SHEETS] Saved sheet {sheet_id}", extra={"sheet_id": sheet_id})
        return sheet

    def export_csv(self, sheet_id: str) -> str:
        return self.view(sheet_id, lambda model: grid_to_csv(model.grid))

    def has_session(self, sheet_id: str) -> bool:
        return sheet_id in self._sessions

    def has_unsaved_edits(self, sheet_id: str) -> bool:
        return sheet_id in self._unsaved

    def evict_idle_sessions(self, now: Optional[float] = None) -> int:
        """Drop sessions idle longer than session_idle_seconds that have nothing unsaved"""
        now = time.monotonic() if now is None else now
        idle = [
            sheet_id for sheet_id, used in list(self._last_used.items())
            if now - used > self.session_idle_seconds and sheet_id not in self._unsaved
        ]

        evicted = 0
        for sheet_id in idle:
            with self._locked(sheet_id):
                used = self._last_used.get(sheet_id)
                # Re-check: another request may have used or edited it meanwhile
                if used is None or now - used <= self.session_idle_seconds or sheet_id in self._unsaved:
                    continue
                if self._drop_session(sheet_id):
                    evicted += 1

        if evicted:
            logger.info(f"[SHEETS] Evicted {evicted} idle session(s)")
        return evicted
