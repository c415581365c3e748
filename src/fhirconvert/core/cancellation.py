"""Cooperative cancellation for conversion calls."""

from __future__ import annotations

import threading

from fhirconvert.core.exceptions import ConversionCancelledError


class CancellationToken:
    """Read-only view of a cancellation signal.

    Once triggered a token stays triggered, so every later call that is
    handed the same token is cancelled as well.
    """

    def __init__(self, event: threading.Event | None = None) -> None:
        self._event = event

    @classmethod
    def none(cls) -> CancellationToken:
        """Return a token that can never be cancelled."""
        return cls(None)

    @property
    def can_be_cancelled(self) -> bool:
        return self._event is not None

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event is not None and self._event.is_set()

    def raise_if_cancellation_requested(self) -> None:
        """Raise ConversionCancelledError if the token has been triggered."""
        if self.is_cancellation_requested:
            raise ConversionCancelledError()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or until ``timeout`` seconds have passed."""
        if self._event is None:
            return False
        return self._event.wait(timeout)


class CancellationTokenSource:
    """Owner side of a cancellation signal."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    @property
    def token(self) -> CancellationToken:
        return CancellationToken(self._event)

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Trigger the signal. Safe to call more than once."""
        self._event.set()
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def cancel_after(self, seconds: float) -> None:
        """Trigger the signal once ``seconds`` have elapsed."""
        if seconds <= 0:
            self.cancel()
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(seconds, self._event.set)
            self._timer.daemon = True
            self._timer.start()
