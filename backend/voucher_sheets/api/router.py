"""
Main API Router
"""
from fastapi import APIRouter

from voucher_sheets.api.endpoints import spreadsheet_formulas, voucher_sheets

api_router = APIRouter()

api_router.include_router(voucher_sheets.router, prefix="/sheets", tags=["sheets"])
api_router.include_router(spreadsheet_formulas.router, prefix="/spreadsheet-formulas", tags=["formulas"])


# Health check
@api_router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "voucher-sheets-backend"}
