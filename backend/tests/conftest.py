"""
Pytest fixtures for grid, formula and sheet API tests.
"""

import os
from typing import List

# Tests never reach Supabase or write log files
os.environ["SHEET_STORE"] = "memory"
os.environ["LOG_TO_FILE"] = "false"

import pytest
from fastapi.testclient import TestClient

from voucher_sheets.abstractions.sheet_store import InMemorySheetStore
from voucher_sheets.core.unified_data_models import Cell, Grid
from voucher_sheets.services.grid_model import GridModel
from voucher_sheets.services.voucher_sheet_service import VoucherSheetService


def make_grid(rows: List[List[str]]) -> Grid:
    """Grid from rows of raw texts; computed values are left unset."""
    return Grid(rows=[[Cell(text) for text in row] for row in rows])


@pytest.fixture
def seeded_model():
    """Default voucher layout, already recomputed."""
    return GridModel.seeded()


@pytest.fixture
def sheet_store():
    return InMemorySheetStore()


@pytest.fixture
def sheet_service(sheet_store):
    return VoucherSheetService(sheet_store)


@pytest.fixture
def client(sheet_service):
    """API client backed by a fresh in-memory sheet service."""
    from voucher_sheets.core.dependencies import get_sheet_service
    from voucher_sheets.main import app

    app.dependency_overrides[get_sheet_service] = lambda: sheet_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
