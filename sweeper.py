# sweeper.py
import asyncio
import logging
from contextlib import closing
from typing import Optional

import database
from config import TOKEN_SWEEP_INTERVAL_MINUTES
from tokens import sweep_tokens


class TokenSweeper:
    """Periodically removes expired and spent download tokens.

    Purely housekeeping: redemption enforces expiry and single use on its own,
    so a failed sweep is logged and retried on the next tick.
    """

    def __init__(self, session_factory=None, interval_seconds: Optional[float] = None):
        self.session_factory = session_factory or database.SessionLocal
        self.interval_seconds = interval_seconds if interval_seconds is not None else TOKEN_SWEEP_INTERVAL_MINUTES * 60
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> int:
        """Runs a single sweep. Returns the number of deleted tokens (0 on failure)."""
        try:
            with closing(self.session_factory()) as db:
                deleted = sweep_tokens(db)
        except Exception as e:
            logging.error(f"Token sweep failed: {e}")
            return 0
        if deleted:
            logging.info(f"Token sweep removed {deleted} stale download token(s).")
        return deleted

    async def _loop(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            await asyncio.to_thread(self.run_once)

    def start(self):
        if self.running:
            return
        logging.info(f"Starting token sweeper (every {self.interval_seconds:g}s).")
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logging.info("Token sweeper stopped.")
