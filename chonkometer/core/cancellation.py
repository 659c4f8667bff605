"""
Cancellation token cho mot run - thread-safe.

Su dung threading.Lock de dam bao thread-safe khi doc/ghi
tu nhieu threads (main thread, signal handler, reader threads).

Token co the co deadline: sau deadline, is_cancelled() tra ve True
ma khong can ai goi cancel().
"""

import threading
import time
from typing import Optional

from chonkometer.core.errors import OperationCancelledError


class CancellationToken:
    """Flag cancel + optional deadline (time.monotonic)."""

    def __init__(self, deadline: Optional[float] = None) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._reason = "operation cancelled"
        self._deadline = deadline

    @classmethod
    def with_timeout(cls, seconds: Optional[float]) -> "CancellationToken":
        """
        Tao token tu dong cancel sau `seconds`.

        Args:
            seconds: So giay; None hoac <= 0 nghia la khong co deadline

        Returns:
            CancellationToken
        """
        if not seconds or seconds <= 0:
            return cls()
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self, reason: str = "operation cancelled") -> None:
        with self._lock:
            if not self._cancelled:
                self._cancelled = True
                self._reason = reason

    def is_cancelled(self) -> bool:
        with self._lock:
            if self._cancelled:
                return True
            if self._deadline is not None and time.monotonic() >= self._deadline:
                self._cancelled = True
                self._reason = "overall timeout exceeded"
                return True
            return False

    def remaining(self) -> Optional[float]:
        """So giay con lai truoc deadline, None neu khong co deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        """
        Raises:
            OperationCancelledError: Neu token da bi cancel / qua deadline
        """
        if self.is_cancelled():
            raise OperationCancelledError(self._reason)
