# entitlement.py
"""Decides whether a user may download paid content.

Administrators are always allowed. Everyone else needs a subscription whose
``active`` flag is set and whose ``end_date`` lies in the future. A record found
expired is corrected to ``active = False`` on the spot so later reads agree.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import database
import models
from errors import EntitlementCheckFailed, InvalidRequest


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _subscription_info(subscription: database.Subscription) -> models.SubscriptionInfo:
    return models.SubscriptionInfo(
        plan_id=subscription.plan_id,
        start_date=_as_utc(subscription.start_date),
        end_date=_as_utc(subscription.end_date),
        active=subscription.active,
    )


def check_entitlement(db: Session, user_id: str, now: Optional[datetime] = None) -> models.Entitlement:
    if not user_id:
        raise InvalidRequest("Missing user id")
    now = now or datetime.now(timezone.utc)
    try:
        user = db.get(database.User, user_id)
        if user is not None and user.is_admin:
            return models.Entitlement(allowed=True, is_admin=True)

        subscription = db.get(database.Subscription, user_id)
        if subscription is None:
            return models.Entitlement(allowed=False)

        expired = _as_utc(subscription.end_date) <= now
        if expired or not subscription.active:
            if subscription.active:
                subscription.active = False
                db.commit()
                logging.info(f"Subscription for user {user_id} expired; marked inactive.")
            return models.Entitlement(allowed=False, subscription=_subscription_info(subscription))

        return models.Entitlement(allowed=True, subscription=_subscription_info(subscription))
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Entitlement check failed for user {user_id}: {e}")
        raise EntitlementCheckFailed() from e
