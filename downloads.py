# downloads.py
"""FastAPI router for the secure download flow:
- Issuing a download token for an entitled user.
- Validating (and thereby spending) a token.
- Redeeming a token and streaming the media as an attachment.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

import models
import streaming
import tokens
from database import get_db
from errors import InvalidRequest

router = APIRouter(prefix="/api/download", tags=["downloads"])


def _require_token(token: Optional[str]) -> str:
    if not token:
        raise InvalidRequest("Missing token")
    return token


@router.post("", response_model=models.DownloadAuthorization, summary="Authorize a download")
def authorize_download(request: models.DownloadRequest, db: Session = Depends(get_db)):
    logging.info(f"Download requested by {request.user_id} for {request.content_type or 'content'} {request.content_id}")
    return tokens.authorize_download(db, request)


@router.get("", response_model=models.TokenValidation, summary="Validate a download token")
def validate_token(token: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """
    Checks a token and spends it. A second call with the same token fails
    with TokenAlreadyUsed.
    """
    tokens.consume_token(db, _require_token(token))
    return models.TokenValidation(valid=True, message="Token is valid")


@router.get("/stream", summary="Redeem a download token and stream the file")
async def stream_download(token: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """
    Spends the token before contacting the origin. If the origin fails the
    token stays spent and the client has to request a new authorization.
    """
    record = await run_in_threadpool(tokens.consume_token, db, _require_token(token))
    return await streaming.stream_download(record)
