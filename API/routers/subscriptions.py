"""
Merchant service subscriptions and the service catalogue.
Endpoint: /api/v1/subscriptions/...
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from schemas.billing import (
    ServiceListResponse, ServiceResponse, SubscribeBody, SubscribeResponse,
    SubscriptionListResponse, UpdatePlanBody, UpdatePlanResponse,
    UpdateSubscriptionStatusBody,
)
from services.subscription import SubscriptionService

router = APIRouter(tags=["Subscriptions"])


@router.get("/services", response_model=ServiceListResponse)
async def list_services(db: Session = Depends(get_db)):
    """Active services, by category then name."""
    services = SubscriptionService(db).list_services()
    data = [ServiceResponse.model_validate(s) for s in services]
    return {"data": data, "count": len(data)}


@router.post("/subscribe", status_code=201, response_model=SubscribeResponse)
async def subscribe(
    body: SubscribeBody,
    db: Session = Depends(get_db),
):
    """Subscribe a merchant to services at today's list prices."""
    service = SubscriptionService(db)
    ok, msg, subs = service.subscribe(
        merchant_id=body.merchant_id,
        items=[item.model_dump() for item in body.services],
        start_date=body.start_date,
        days=body.days,
    )
    if not ok:
        code = 404 if "not found" in msg else 400
        raise HTTPException(code, msg)
    return {
        "success": True,
        "message": msg,
        "data": service.list_active(body.merchant_id),
    }


@router.post("/update-plan", response_model=UpdatePlanResponse)
async def update_plan(
    body: UpdatePlanBody,
    db: Session = Depends(get_db),
):
    """Add, re-size or remove individual services (once every 24 hours)."""
    ok, msg, updates = SubscriptionService(db).update_plan(
        merchant_id=body.merchant_id,
        services_to_update=[item.model_dump() for item in body.services_to_update],
        services_to_remove=body.services_to_remove,
    )
    if not ok:
        if msg == "Merchant not found":
            code = 404
        elif "24 hours" in msg:
            code = 429
        else:
            code = 400
        raise HTTPException(code, msg)
    return {"success": True, "message": msg, "updates": updates}


@router.put("/{subscription_id}/status")
async def update_subscription_status(
    subscription_id: int,
    body: UpdateSubscriptionStatusBody,
    db: Session = Depends(get_db),
):
    service = SubscriptionService(db)
    ok, msg, sub = service.update_status(subscription_id, body.status)
    if not ok:
        code = 404 if "not found" in msg else 400
        raise HTTPException(code, msg)
    return {"success": True, "message": msg, "id": sub.id, "status": sub.status}


@router.get("/merchant/{merchant_id}", response_model=SubscriptionListResponse)
async def get_merchant_subscriptions(
    merchant_id: int,
    db: Session = Depends(get_db),
):
    """Active subscriptions of a merchant."""
    data = SubscriptionService(db).list_active(merchant_id)
    return {"data": data, "count": len(data)}
