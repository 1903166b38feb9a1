# client.py
"""Thin client for the download API, used by scripts and server-side callers."""
import logging
from typing import Optional

import requests

from config import LUO_API_URL
from streaming import download_filename


def request_secure_download(
    user_id: Optional[str],
    content_id: Optional[str],
    content_type: str,
    stream_url: Optional[str],
    title: str,
    base_url: str = LUO_API_URL,
) -> dict:
    """
    Asks the API for a download token.

    Returns ``{"success": True, "download_url": ..., "filename": ..., ...}`` on
    success. On failure ``error`` is ``"subscription_expired"`` when the user
    has to buy a plan, otherwise the server's message.
    """
    if not user_id or not content_id or not stream_url or not title:
        logging.info(f"Missing required parameters: user={bool(user_id)} content={bool(content_id)} url={bool(stream_url)} title={bool(title)}")
        return {"success": False, "error": "Missing required information"}

    try:
        response = requests.post(
            f"{base_url.rstrip('/')}/api/download",
            json={
                "userId": user_id,
                "contentId": content_id,
                "contentType": content_type,
                "streamUrl": stream_url,
                "title": title,
            },
            timeout=10,
        )
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logging.error(f"Secure download request failed: {e}")
        return {"success": False, "error": "Network error"}
    if not isinstance(data, dict):
        logging.error(f"Unexpected download API response: {data!r}")
        return {"success": False, "error": "Download failed"}

    if not response.ok:
        if data.get("requiresSubscription"):
            return {"success": False, "error": "subscription_expired"}
        return {"success": False, "error": data.get("error") or "Download failed"}

    return {
        "success": True,
        "download_url": f"{base_url.rstrip('/')}{data['downloadUrl']}",
        "token": data["token"],
        "expires_at": data["expiresAt"],
        "filename": download_filename(title),
    }


def validate_download_token(token: str, base_url: str = LUO_API_URL) -> bool:
    """True only if the server accepted the token. This spends the token."""
    try:
        response = requests.get(f"{base_url.rstrip('/')}/api/download", params={"token": token}, timeout=10)
        data = response.json()
        return response.ok and isinstance(data, dict) and data.get("valid") is True
    except (requests.RequestException, ValueError) as e:
        logging.error(f"Token validation error: {e}")
        return False
