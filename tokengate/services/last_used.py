"""Fire-and-forget recording of token usage timestamps."""

import asyncio
import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Optional

from tokengate.services.token_store import AccessTokenStore

logger = logging.getLogger(__name__)


class LastUsedRecorder:
    """Updates ``access_tokens.last_used_at`` off the request path.

    Each touch runs in its own task with its own session, so a slow or
    failing write never delays or fails the verification that triggered
    it. Failures are logged and dropped.
    """

    _instance: Optional["LastUsedRecorder"] = None
    _instance_lock: threading.Lock = threading.Lock()

    # Cap on in-flight touches to prevent unbounded task creation
    MAX_PENDING = 500

    def __init__(self):
        self._session_factory: Callable | None = None
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def get_instance(cls) -> "LastUsedRecorder":
        """Get or create singleton instance (thread-safe)."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def set_session_factory(self, factory: Callable | None) -> None:
        """Set the session factory used for touches. None disables recording."""
        self._session_factory = factory

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, jti: str, used_at: datetime | None = None) -> bool:
        """Queue a last_used_at update for ``jti``.

        Returns False when nothing was scheduled (no session factory, no
        running loop, or too many touches in flight).
        """
        if self._session_factory is None:
            return False
        if len(self._tasks) >= self.MAX_PENDING:
            logger.warning(
                f"Last-used task limit reached ({self.MAX_PENDING}), skipping touch for {jti}"
            )
            return False
        try:
            task = asyncio.get_running_loop().create_task(
                self._record(jti, used_at or datetime.now(UTC))
            )
        except RuntimeError:
            logger.debug("No running event loop, skipping last-used touch")
            return False
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _record(self, jti: str, used_at: datetime) -> None:
        factory = self._session_factory
        if factory is None:
            return
        try:
            async with factory() as session:
                await AccessTokenStore(session).touch_last_used(jti, used_at)
                await session.commit()
        except Exception as e:
            # Best-effort: nothing may escape into the event loop
            logger.warning(f"Failed to record last use of token {jti}: {e}")

    async def drain(self, timeout: float = 5.0) -> None:
        """Wait for in-flight touches, cancelling any still running after ``timeout``."""
        if not self._tasks:
            return
        tasks = list(self._tasks)
        _, still_running = await asyncio.wait(tasks, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Cancelled {len(still_running)} pending last-used touches")


def get_last_used_recorder() -> LastUsedRecorder:
    """Get the singleton recorder."""
    return LastUsedRecorder.get_instance()
