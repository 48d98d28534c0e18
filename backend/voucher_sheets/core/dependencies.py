"""
Dependency injection for the API layer
One sheet store and one sheet service per process; tests override them
"""

from functools import lru_cache
import logging

from voucher_sheets.abstractions.sheet_store import (
    InMemorySheetStore,
    SheetStore,
    SupabaseSheetStore,
)
from voucher_sheets.core.config import settings
from voucher_sheets.services.voucher_sheet_service import VoucherSheetService

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Factory for the configured persistence backend"""

    @staticmethod
    def create_sheet_store() -> SheetStore:
        backend = settings.SHEET_STORE.lower()
        if backend == "memory":
            logger.info("Using in-memory sheet store")
            return InMemorySheetStore()

        from voucher_sheets.core.database import supabase_service

        client = supabase_service.get_client()
        if client is not None:
            logger.info(f"Using Supabase sheet store (table {settings.SHEETS_TABLE})")
            return SupabaseSheetStore(client, table=settings.SHEETS_TABLE)
        if backend == "supabase":
            raise RuntimeError("SHEET_STORE=supabase but Supabase is not configured")

        logger.warning("Supabase unavailable - falling back to in-memory sheet store")
        return InMemorySheetStore()


@lru_cache(maxsize=1)
def get_sheet_store() -> SheetStore:
    return ServiceFactory.create_sheet_store()


@lru_cache(maxsize=1)
def get_sheet_service() -> VoucherSheetService:
    """Process-wide sheet service; idle sessions are evicted once saved"""
    return VoucherSheetService(get_sheet_store(), session_idle_seconds=settings.SESSION_IDLE_SECONDS)
