"""
Backend-agnostic abstractions for sheet persistence.
Implementations can target Supabase or process memory.
"""

from voucher_sheets.abstractions.sheet_store import (
    InMemorySheetStore,
    SheetStore,
    SupabaseSheetStore,
)

__all__ = [
    "SheetStore",
    "InMemorySheetStore",
    "SupabaseSheetStore",
]
