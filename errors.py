# errors.py
"""Error taxonomy for the download flow.

Every failure carries an HTTP status, a machine readable code and a message.
The API layer renders them as ``{"error": ..., "code": ...}``.
"""
from typing import Optional

from fastapi import status


class DownloadError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "download_error"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class InvalidRequest(DownloadError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_request"
    default_message = "Missing required fields"


class SubscriptionRequired(DownloadError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "subscription_required"
    default_message = "Subscription expired. Subscribe to continue download."

    def to_dict(self) -> dict:
        return {**super().to_dict(), "requiresSubscription": True}


class InvalidToken(DownloadError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_token"
    default_message = "Invalid token"


class TokenExpired(DownloadError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "token_expired"
    default_message = "Token expired"


class TokenAlreadyUsed(DownloadError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "token_already_used"
    default_message = "Token already used"


class UpstreamFetchFailed(DownloadError):
    code = "upstream_fetch_failed"
    default_message = "Failed to fetch video"


class StorageUnavailable(DownloadError):
    code = "storage_unavailable"
    default_message = "Storage unavailable"


class EntitlementCheckFailed(StorageUnavailable):
    code = "entitlement_check_failed"
    default_message = "Entitlement check failed"
