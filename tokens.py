# tokens.py
"""Single-use, time-boxed download tokens.

A token row is written once by ``authorize_download``, flipped to ``used`` at
most once by ``consume_token`` and removed by ``sweep_tokens`` (or by
``consume_token`` when it finds the row expired or spent).
"""
import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import database
import models
from config import DOWNLOAD_TOKEN_TTL_SECONDS
from entitlement import check_entitlement
from errors import (
    InvalidToken,
    StorageUnavailable,
    SubscriptionRequired,
    TokenAlreadyUsed,
    TokenExpired,
)

TOKEN_BYTES = 32  # 256 bits, rendered as 64 hex characters
STREAM_PATH = "/api/download/stream"


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def now_ms() -> int:
    return int(time.time() * 1000)


def to_iso(ms: int) -> str:
    """Formats epoch milliseconds the way JavaScript's toISOString does."""
    dt = datetime.fromtimestamp(ms // 1000, tz=timezone.utc).replace(microsecond=(ms % 1000) * 1000)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _short(token: str) -> str:
    return f"{token[:8]}..."


def _snapshot(record: database.DownloadToken) -> models.TokenRecord:
    return models.TokenRecord(
        token=record.token,
        user_id=record.user_id,
        content_id=record.content_id,
        content_type=record.content_type,
        stream_url=record.stream_url,
        title=record.title,
        expires_at=record.expires_at,
        used=record.used,
    )


def _delete_token(db: Session, token: str):
    db.execute(
        delete(database.DownloadToken)
        .where(database.DownloadToken.token == token)
        .execution_options(synchronize_session=False)
    )
    db.commit()


def authorize_download(db: Session, request: models.DownloadRequest, now: Optional[int] = None) -> models.DownloadAuthorization:
    """Checks the user's entitlement and mints a download token for the requested stream.

    Raises SubscriptionRequired for users who are neither admins nor active
    subscribers; no token is written in that case.
    """
    entitlement = check_entitlement(db, request.user_id)
    if not entitlement.allowed:
        logging.info(f"Download denied for user {request.user_id} (content {request.content_id}): no active subscription.")
        raise SubscriptionRequired()

    now = now_ms() if now is None else now
    token = generate_token()
    expires_at = now + DOWNLOAD_TOKEN_TTL_SECONDS * 1000
    try:
        db.add(database.DownloadToken(
            token=token,
            user_id=request.user_id,
            content_id=request.content_id,
            content_type=request.content_type,
            stream_url=request.stream_url,
            title=request.title,
            expires_at=expires_at,
            used=False,
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Could not store download token for user {request.user_id}: {e}")
        raise StorageUnavailable() from e

    role = "admin" if entitlement.is_admin else "subscriber"
    logging.info(f"Download authorized for {role} {request.user_id}, content {request.content_id}, token {_short(token)}")
    return models.DownloadAuthorization(
        download_url=f"{STREAM_PATH}?token={token}",
        token=token,
        expires_at=to_iso(expires_at),
        message="Download authorized (Admin)" if entitlement.is_admin else "Download authorized",
    )


def consume_token(db: Session, token: str, now: Optional[int] = None) -> models.TokenRecord:
    """Validates a token and spends it in the same step.

    The ``used`` flip is a conditional UPDATE, so of several concurrent callers
    exactly one gets the record back; the rest see TokenAlreadyUsed (or
    InvalidToken once the spent row has been removed).
    """
    now = now_ms() if now is None else now
    try:
        record = db.get(database.DownloadToken, token)
        if record is None:
            raise InvalidToken()

        if now >= record.expires_at:
            _delete_token(db, token)
            logging.info(f"Token {_short(token)} expired; removed.")
            raise TokenExpired()

        if record.used:
            _delete_token(db, token)
            logging.info(f"Token {_short(token)} was already used; removed.")
            raise TokenAlreadyUsed()

        snapshot = _snapshot(record)
        result = db.execute(
            update(database.DownloadToken)
            .where(
                database.DownloadToken.token == token,
                database.DownloadToken.used.is_(False),
                database.DownloadToken.expires_at > now,
            )
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Token lookup failed for {_short(token)}: {e}")
        raise StorageUnavailable() from e

    if result.rowcount != 1:
        logging.info(f"Token {_short(token)} lost a redemption race.")
        raise TokenAlreadyUsed()
    logging.info(f"Token {_short(token)} redeemed by user {snapshot.user_id}.")
    return snapshot.model_copy(update={"used": True})


def sweep_tokens(db: Session, now: Optional[int] = None, dry_run: bool = False) -> int:
    """Deletes every token that is expired or already used. Returns how many matched."""
    now = now_ms() if now is None else now
    stale = or_(database.DownloadToken.expires_at <= now, database.DownloadToken.used.is_(True))
    try:
        if dry_run:
            return db.scalar(select(func.count()).select_from(database.DownloadToken).where(stale))
        result = db.execute(
            delete(database.DownloadToken).where(stale).execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageUnavailable() from e
