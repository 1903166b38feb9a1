# subscriptions.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
from database import get_db
from entitlement import check_entitlement

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])

SUBSCRIPTION_PLANS = [
    models.SubscriptionPlan(id="1hour", name="1 Hour", duration="1 Hour", price=1000, days=0.041667),
    models.SubscriptionPlan(id="12hours", name="12 Hours", duration="12 Hours", price=2000, days=0.5),
    models.SubscriptionPlan(id="1day", name="1 Day", duration="1 Day", price=20000, days=1),
    models.SubscriptionPlan(id="1week", name="1 Week", duration="1 Week", price=5000, days=7),
    models.SubscriptionPlan(id="1month", name="1 Month", duration="1 Month", price=8000, days=30),
    models.SubscriptionPlan(id="3months", name="3 Months", duration="3 Months", price=15000, days=90),
    models.SubscriptionPlan(id="1year", name="1 Year", duration="1 Year", price=25000, days=365),
]

# --- MUST BE FIRST: /plans before the dynamic /{user_id} route ---
@router.get("/plans", response_model=list[models.SubscriptionPlan], summary="List subscription plans")
def list_plans():
    return SUBSCRIPTION_PLANS

@router.get("/{user_id}", response_model=models.SubscriptionStatus, summary="Get a user's entitlement")
def get_subscription_status(user_id: str, db: Session = Depends(get_db)):
    """
    Runs the entitlement check for a user. An expired subscription is
    switched to inactive as a side effect.
    """
    entitlement = check_entitlement(db, user_id)
    return models.SubscriptionStatus(
        user_id=user_id,
        allowed=entitlement.allowed,
        is_admin=entitlement.is_admin,
        subscription=entitlement.subscription,
    )
