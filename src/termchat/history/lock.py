"""Process exclusivity lock on the history file.

An advisory ``flock`` on the database file keeps a second termchat
process from writing to the same history.
"""

import asyncio
import fcntl
import os
import time
from pathlib import Path
from typing import Any

from ..config import LOCK_INTERVAL, LOCK_TIMEOUT
from ..errors import AlreadyRunningError, PersistenceError


class ExclusiveLock:
    """Exclusive, non-blocking advisory lock acquired with bounded retry.

    Release the lock only after the store using the file has been closed:
    closing this descriptor must not race SQLite's own locks.

    Usage:
        async with ExclusiveLock(path):
            ...
    """

    def __init__(
        self,
        path: str | Path,
        timeout: float = LOCK_TIMEOUT,
        interval: float = LOCK_INTERVAL,
    ):
        self._path = Path(path)
        self._timeout = timeout
        self._interval = interval
        self._fd: int | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def locked(self) -> bool:
        return self._fd is not None

    def _try_lock(self, fd: int) -> bool:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            return False
        return True

    async def acquire(self) -> None:
        """Acquire the lock, retrying every interval until the timeout.

        Raises:
            AlreadyRunningError: If another process holds the lock
            PersistenceError: If the file cannot be opened or locked
        """
        if self._fd is not None:
            return

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self._path, os.O_RDWR | os.O_CREAT, 0o640)
        except OSError as e:
            raise PersistenceError(f"cannot open {self._path}: {e}") from e

        deadline = time.monotonic() + self._timeout
        try:
            while not self._try_lock(fd):
                if time.monotonic() >= deadline:
                    raise AlreadyRunningError(str(self._path))
                await asyncio.sleep(self._interval)
        except OSError as e:
            os.close(fd)
            raise PersistenceError(f"cannot lock {self._path}: {e}") from e
        except BaseException:
            os.close(fd)
            raise

        self._fd = fd

    def release(self) -> None:
        """Release the lock if held."""
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

    async def __aenter__(self) -> "ExclusiveLock":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()
