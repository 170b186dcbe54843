"""
Billing — daily service charges, billing runs and payment status.
Endpoint: /api/v1/billing/...
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger
from sqlalchemy.orm import Session

from database import get_db
from schemas.billing import (
    BillingRecordListResponse, BillingRunResponse, DailyChargesResponse,
    PaymentStatusResponse, RunDailyBillingBody,
)
from services.billing import BillingService, should_block_merchant_access
from services.billing_run import BillingRunError, DailyBillingService

router = APIRouter(tags=["Billing"])


# ==================== ENDPOINTS ====================

@router.get("/daily-charges/{merchant_id}", response_model=DailyChargesResponse)
async def get_daily_charges(
    merchant_id: int,
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today"),
    db: Session = Depends(get_db),
):
    """Today's (or `date`'s) charge lines and this month's accumulated pending fees."""
    service = _merchant_service(db, merchant_id)
    return service.get_daily_charges(_parse_date(date, required=False))


@router.post("/daily-charges/run", response_model=BillingRunResponse)
async def run_daily_billing(
    body: RunDailyBillingBody,
    db: Session = Depends(get_db),
):
    """Create the daily service fee records for `date`."""
    if body.date is None:
        raise HTTPException(400, "Date is required")

    try:
        report = DailyBillingService(db).run_daily_billing(
            body.date, merchant_ids=body.merchant_ids or None
        )
    except BillingRunError as e:
        logger.error(f"Billing run via API failed: {e}")
        raise HTTPException(503, "Failed to read subscriptions")
    return report.to_dict()


@router.get("/payment-status/{merchant_id}", response_model=PaymentStatusResponse)
async def get_payment_status(
    merchant_id: int,
    db: Session = Depends(get_db),
):
    service = _merchant_service(db, merchant_id)
    status = service.get_payment_status()
    status["access_blocked"] = should_block_merchant_access(status)
    return status


@router.get("/records/{merchant_id}", response_model=BillingRecordListResponse)
async def get_billing_records(
    merchant_id: int,
    status: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Billing history for a merchant, newest first."""
    service = _merchant_service(db, merchant_id)
    data = service.list_billing_records(
        status=status.upper() if status else None,
        date_from=_parse_date(date_from, required=False),
        date_to=_parse_date(date_to, required=False),
    )
    return {"data": data, "count": len(data)}


def _merchant_service(db: Session, merchant_id: int) -> BillingService:
    service = BillingService(db, merchant_id)
    if not service.get_merchant():
        raise HTTPException(404, "Merchant not found")
    return service


def _parse_date(s: Optional[str], required: bool = True) -> Optional[date]:
    if not s:
        if required:
            raise HTTPException(400, "Date is required")
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        raise HTTPException(400, f"Invalid date: {s}")
