import asyncio
import logging
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError

import sweep_tokens as sweep_script
from sweeper import TokenSweeper


def test_run_once_removes_stale_tokens(session_factory, make_token, load_token):
    make_token(token="live")
    make_token(token="expired", expires_in_ms=-1)
    make_token(token="spent", used=True)

    deleted = TokenSweeper(session_factory).run_once()

    assert deleted == 2
    assert load_token("live") is not None
    assert load_token("expired") is None
    assert load_token("spent") is None


def test_run_once_logs_and_survives_storage_failure(caplog):
    factory = MagicMock(side_effect=OperationalError("DELETE", {}, Exception("db down")))

    with caplog.at_level(logging.ERROR):
        deleted = TokenSweeper(factory).run_once()

    assert deleted == 0
    assert "Token sweep failed" in caplog.text


def test_background_loop_sweeps_until_stopped(session_factory, make_token, load_token):
    make_token(token="expired", expires_in_ms=-1)
    sweeper = TokenSweeper(session_factory, interval_seconds=0.01)

    async def scenario():
        sweeper.start()
        assert sweeper.running
        await asyncio.sleep(0.2)
        await sweeper.stop()

    asyncio.run(scenario())

    assert load_token("expired") is None
    assert sweeper.running is False


def test_stop_without_start_is_a_noop():
    asyncio.run(TokenSweeper(MagicMock(), interval_seconds=1).stop())


def test_sweep_script(session_factory, make_token, load_token, capsys):
    make_token(token="expired", expires_in_ms=-1)

    with patch("sweep_tokens.SessionLocal", session_factory):
        with patch("sys.argv", ["sweep_tokens.py", "--dry-run"]):
            sweep_script.main()
        assert "1 stale token(s)" in capsys.readouterr().out
        assert load_token("expired") is not None

        with patch("sys.argv", ["sweep_tokens.py"]):
            sweep_script.main()
        assert "Deleted 1 stale token(s)" in capsys.readouterr().out
        assert load_token("expired") is None
