from unittest.mock import MagicMock, patch

import requests

from client import request_secure_download, validate_download_token

BASE = "http://luo.test"


def _response(status_code, body):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = body
    return response


def test_missing_arguments_short_circuit():
    with patch("client.requests.post") as post:
        result = request_secure_download("u1", None, "movie", "https://x/v.mp4", "Demo", base_url=BASE)

    assert result == {"success": False, "error": "Missing required information"}
    post.assert_not_called()


def test_successful_request_returns_absolute_url_and_filename():
    body = {
        "success": True,
        "downloadUrl": "/api/download/stream?token=abc",
        "token": "abc",
        "expiresAt": "2026-01-01T00:00:00.000Z",
        "message": "Download authorized",
    }
    with patch("client.requests.post", return_value=_response(200, body)) as post:
        result = request_secure_download("u1", "c1", "movie", "https://x/v.mp4", "My Movie: Part 2?!", base_url=BASE)

    assert result == {
        "success": True,
        "download_url": "http://luo.test/api/download/stream?token=abc",
        "token": "abc",
        "expires_at": "2026-01-01T00:00:00.000Z",
        "filename": "My_Movie_Part_2.mp4",
    }
    assert post.call_args.kwargs["json"]["userId"] == "u1"
    assert post.call_args.args[0] == "http://luo.test/api/download"


def test_subscription_denial_is_mapped():
    body = {"error": "Subscription expired. Subscribe to continue download.", "requiresSubscription": True}
    with patch("client.requests.post", return_value=_response(403, body)):
        result = request_secure_download("u1", "c1", "movie", "https://x/v.mp4", "Demo", base_url=BASE)

    assert result == {"success": False, "error": "subscription_expired"}


def test_other_errors_pass_server_message():
    with patch("client.requests.post", return_value=_response(500, {"error": "Storage unavailable"})):
        result = request_secure_download("u1", "c1", "movie", "https://x/v.mp4", "Demo", base_url=BASE)

    assert result == {"success": False, "error": "Storage unavailable"}


def test_network_error():
    with patch("client.requests.post", side_effect=requests.ConnectionError("refused")):
        result = request_secure_download("u1", "c1", "movie", "https://x/v.mp4", "Demo", base_url=BASE)

    assert result == {"success": False, "error": "Network error"}


def test_validate_download_token():
    with patch("client.requests.get", return_value=_response(200, {"valid": True, "message": "Token is valid"})) as get:
        assert validate_download_token("abc", base_url=BASE) is True
    assert get.call_args.kwargs["params"] == {"token": "abc"}

    with patch("client.requests.get", return_value=_response(401, {"error": "Token already used"})):
        assert validate_download_token("abc", base_url=BASE) is False

    with patch("client.requests.get", side_effect=requests.Timeout("slow")):
        assert validate_download_token("abc", base_url=BASE) is False


def test_non_object_json_body_is_a_failure():
    with patch("client.requests.post", return_value=_response(502, ["Bad Gateway"])):
        result = request_secure_download("u1", "c1", "movie", "https://x/v.mp4", "Demo", base_url=BASE)
    assert result == {"success": False, "error": "Download failed"}

    with patch("client.requests.get", return_value=_response(200, "ok")):
        assert validate_download_token("abc", base_url=BASE) is False
